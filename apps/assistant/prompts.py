"""
Prompts and suggested questions for the business advisor.
"""
from typing import Any, Dict, List

ADVISOR_SYSTEM_PROMPT = """You are a helpful business advisor for small shops in India.
The shop owner speaks simple Hindi/English. Give practical, actionable advice.
Keep responses concise (3-4 sentences) and friendly.
Use emojis occasionally to make it engaging.
Include specific numbers and data points when available."""

CONTEXT_PROMPT = """Shop Information:
- Name: {shop_name}
- Category: {category}
- Total Products: {total_products}
- Total Orders: {total_orders}
- Total Revenue: ₹{total_revenue}

Recent Performance:
- Today's Sales: ₹{today_sales}
- This Week's Sales: ₹{week_sales}
- This Month's Sales: ₹{month_sales}
{top_products}{low_stock}
User Question: {query}"""

CAMPAIGN_PROMPT = """Generate a short WhatsApp marketing message (max 100 characters) in Hindi/English mix for a {category} shop.
Context: {occasion}
Offer: {offer}
Keep it friendly and include 1-2 emojis."""

COMMON_QUESTIONS = [
    "💰 आज की sales कैसी है?",
    "📦 Which is my best selling product?",
    "📊 क्या मुझे कोई offer देना चाहिए?",
    "⚠️ Low stock वाले products कौन से हैं?",
    "👥 मेरे top customers कौन हैं?",
]

CATEGORY_QUESTIONS = {
    'kirana': ["🛒 Grocery items में सबसे ज्यादा क्या बिकता है?"],
    'salon': ["💇 Which service is most popular?"],
    'tailor': ["👔 Peak season में क्या करूं?"],
    'tiffin': ["🍱 Daily vs weekend orders का comparison?"],
    'tuition': ["📚 Student retention कैसे बढ़ाएं?"],
}


def get_suggested_questions(category: str) -> List[str]:
    return COMMON_QUESTIONS + CATEGORY_QUESTIONS.get(category, [])


def build_context_prompt(query: str, shop_data: Dict[str, Any], analytics: Dict[str, Any]) -> str:
    top_products = ''
    if analytics.get('topProducts'):
        lines = [
            f"{i}. {p['name']} - {p['totalSold']} sold"
            for i, p in enumerate(analytics['topProducts'], start=1)
        ]
        top_products = "\nTop Selling Products:\n" + "\n".join(lines) + "\n"

    low_stock = ''
    if analytics.get('lowStockProducts'):
        lines = [f"- {p['name']}: {p['stock']} {p['unit']}" for p in analytics['lowStockProducts']]
        low_stock = "\nLow Stock Products:\n" + "\n".join(lines) + "\n"

    return CONTEXT_PROMPT.format(
        shop_name=shop_data.get('shopName'),
        category=shop_data.get('category'),
        total_products=analytics.get('totalProducts', 0),
        total_orders=analytics.get('totalOrders', 0),
        total_revenue=analytics.get('totalRevenue', 0),
        today_sales=analytics.get('todaySales', 0),
        week_sales=analytics.get('weekSales', 0),
        month_sales=analytics.get('monthSales', 0),
        top_products=top_products,
        low_stock=low_stock,
        query=query,
    )
