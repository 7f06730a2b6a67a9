"""Per-language texts shown to customers.

Control flow never branches on the language; it only looks strings up here.
"""
from typing import Dict

LANGUAGE_NAMES = {
    "hr": "Croatian",
    "de": "German",
    "en": "English",
}

MESSAGES: Dict[str, Dict[str, str]] = {
    "hr": {
        "no_phone": "Narudžbu nažalost nije moguće potvrditi jer nedostaje broj telefona. Molimo pošaljite svoj broj telefona.",
        "no_pin": "Narudžbu nažalost nije moguće potvrditi jer nedostaje PIN. Molimo upišite svoj PIN.",
        "wrong_pin": "Narudžbu nije moguće potvrditi: PIN ne odgovara broju telefona {phone}. Provjerite PIN i pokušajte ponovno.",
        "incomplete": "Narudžbu još nije moguće potvrditi jer nedostaju podaci: {missing}. Molimo nadopunite ih.",
        "unknown_items": "Narudžbu nije moguće potvrditi jer nijedan odabrani proizvod trenutno nije u ponudi.",
        "not_confirmed": "Narudžbu nažalost nije moguće potvrditi jer podaci narudžbe nisu ispravni. Molimo provjerite broj telefona, PIN i proizvode.",
        "confirmed": "Narudžba #{order_id} je potvrđena. Ukupno: {total} {currency}. Preuzimanje: {pickup_time}.",
        "superseded": "Prethodna narudžba #{previous_id} je otkazana i zamijenjena ovom.",
        "duplicate": "Narudžba #{order_id} je već potvrđena. Ukupno: {total} {currency}.",
        "generic_error": "Došlo je do greške. Molimo pokušajte ponovno za nekoliko trenutaka.",
        "missing_items": "proizvodi",
        "missing_pickup_time": "vrijeme preuzimanja",
    },
    "de": {
        "no_phone": "Die Bestellung konnte leider nicht bestätigt werden, weil die Telefonnummer fehlt. Bitte nennen Sie Ihre Telefonnummer.",
        "no_pin": "Die Bestellung konnte leider nicht bestätigt werden, weil die PIN fehlt. Bitte geben Sie Ihre PIN ein.",
        "wrong_pin": "Die Bestellung konnte nicht bestätigt werden: Die PIN passt nicht zur Telefonnummer {phone}. Bitte prüfen Sie die PIN und versuchen Sie es erneut.",
        "incomplete": "Die Bestellung kann noch nicht bestätigt werden, es fehlen: {missing}. Bitte ergänzen Sie die Angaben.",
        "unknown_items": "Die Bestellung konnte nicht bestätigt werden, weil keines der gewählten Produkte aktuell verfügbar ist.",
        "not_confirmed": "Die Bestellung konnte leider nicht bestätigt werden, weil die Bestelldaten ungültig sind. Bitte prüfen Sie Telefonnummer, PIN und Produkte.",
        "confirmed": "Bestellung #{order_id} ist bestätigt. Gesamt: {total} {currency}. Abholung: {pickup_time}.",
        "superseded": "Die vorherige Bestellung #{previous_id} wurde storniert und durch diese ersetzt.",
        "duplicate": "Bestellung #{order_id} ist bereits bestätigt. Gesamt: {total} {currency}.",
        "generic_error": "Es ist ein Fehler aufgetreten. Bitte versuchen Sie es in einigen Augenblicken erneut.",
        "missing_items": "Produkte",
        "missing_pickup_time": "Abholzeit",
    },
    "en": {
        "no_phone": "Sorry, the order could not be confirmed because the phone number is missing. Please send your phone number.",
        "no_pin": "Sorry, the order could not be confirmed because the PIN is missing. Please enter your PIN.",
        "wrong_pin": "The order could not be confirmed: the PIN does not match the phone number {phone}. Please check your PIN and try again.",
        "incomplete": "The order cannot be confirmed yet because some details are missing: {missing}. Please add them.",
        "unknown_items": "The order could not be confirmed because none of the selected products are currently available.",
        "not_confirmed": "Sorry, the order could not be confirmed because the order details are invalid. Please check your phone number, PIN and products.",
        "confirmed": "Order #{order_id} is confirmed. Total: {total} {currency}. Pickup: {pickup_time}.",
        "superseded": "Your previous order #{previous_id} was canceled and replaced by this one.",
        "duplicate": "Order #{order_id} is already confirmed. Total: {total} {currency}.",
        "generic_error": "Something went wrong. Please try again in a moment.",
        "missing_items": "products",
        "missing_pickup_time": "pickup time",
    },
}


def message(lang: str, key: str, **kwargs) -> str:
    table = MESSAGES.get(lang) or MESSAGES["en"]
    return table[key].format(**kwargs)
