"""
Message bodies for order confirmations and offers, in English and Hindi.
"""
from datetime import date
from typing import Optional


def _format_date(value: Optional[date]) -> Optional[str]:
    return value.strftime('%d/%m/%Y') if value else None


def format_order_confirmation(
    order_number: str,
    customer_name: str,
    total,
    shop_name: str,
    delivery_date: date = None,
    language: str = 'en',
) -> str:
    delivery = _format_date(delivery_date)

    if language == 'hi':
        message = f"🎉 नमस्ते {customer_name}!\n\n"
        message += f"आपका ऑर्डर #{order_number} कन्फर्म हो गया है।\n\n"
        message += f"💰 कुल रकम: ₹{total}\n"
        if delivery:
            message += f"📅 डिलीवरी: {delivery}\n"
        message += f"\n{shop_name} में खरीदारी के लिए धन्यवाद! 🙏"
        return message

    message = f"🎉 Hello {customer_name}!\n\n"
    message += f"Your order #{order_number} is confirmed.\n\n"
    message += f"💰 Total: ₹{total}\n"
    if delivery:
        message += f"📅 Delivery: {delivery}\n"
    message += f"\nThank you for shopping at {shop_name}! 🙏"
    return message


def format_offer_message(shop_name: str, offer_text: str, valid_until: date = None,
                         language: str = 'en') -> str:
    valid = _format_date(valid_until)

    if language == 'hi':
        message = f"🎁 {shop_name} की तरफ से ऑफर!\n\n{offer_text}\n\n"
        if valid:
            message += f"⏰ अंतिम तारीख: {valid}\n"
        message += "\nअभी ऑर्डर करें! 🛒"
        return message

    message = f"🎁 Special offer from {shop_name}!\n\n{offer_text}\n\n"
    if valid:
        message += f"⏰ Valid until: {valid}\n"
    message += "\nOrder now! 🛒"
    return message
