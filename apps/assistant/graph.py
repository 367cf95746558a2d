"""
LangGraph workflow behind the AI business assistant.

Graph Structure:

    START
      │
      ▼
    gather_context (shop profile + analytics snapshot)
      │
      ├─── error ──→ handle_error ──→ END
      │
      ▼
    generate_advice (LLM)
      │
      ├─── error ──→ handle_error ──→ END
      │
      ▼
     END
"""
import logging
from typing import Any, Dict

from django.conf import settings
from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI
from langgraph.graph import END, StateGraph

from apps.analytics.services import build_dashboard
from apps.core.utils import truncate_for_display
from .prompts import ADVISOR_SYSTEM_PROMPT, CAMPAIGN_PROMPT, build_context_prompt
from .state import AdvisorState, create_initial_state

logger = logging.getLogger(__name__)

NOT_CONFIGURED_MESSAGE = "AI service is not configured. Please add your API key."
PROVIDER_ERROR_MESSAGE = "AI service error. Please try again."


def get_llm(temperature: float, max_tokens: int) -> ChatOpenAI:
    """ChatOpenAI against the configured OpenAI-compatible endpoint."""
    return ChatOpenAI(
        model=settings.LLM_MODEL,
        api_key=settings.LLM_API_KEY,
        base_url=settings.LLM_BASE_URL,
        temperature=temperature,
        max_tokens=max_tokens,
        timeout=settings.LLM_TIMEOUT_SECONDS,
    )


# =============================================================================
# NODES
# =============================================================================

def gather_context(state: AdvisorState) -> Dict[str, Any]:
    shop = state['shop']
    try:
        dashboard = build_dashboard(shop)
    except Exception as e:
        logger.error(f"Error gathering context for shop {shop.id}: {e}")
        return {"error": str(e)}

    analytics = {
        'totalProducts': dashboard['totals']['products'],
        'totalOrders': shop.total_orders,
        'totalRevenue': shop.total_revenue,
        'todaySales': dashboard['today']['sales'],
        'weekSales': dashboard['week']['sales'],
        'monthSales': dashboard['month']['sales'],
        'topProducts': dashboard['topProducts'],
        'lowStockProducts': dashboard['lowStockProducts'][:5],
    }
    return {
        "shop_data": {'shopName': shop.name, 'category': shop.category},
        "analytics": analytics,
    }


def handle_error(state: AdvisorState) -> Dict[str, Any]:
    logger.warning(f"Advisor workflow failed: {state.get('error')}")
    return {
        "success": False,
        "response": None,
        "message": PROVIDER_ERROR_MESSAGE,
    }


def route_after_step(state: AdvisorState) -> str:
    if state.get("error"):
        return "handle_error"
    return "continue"


# =============================================================================
# ADVISOR SERVICE
# =============================================================================

class BusinessAdvisor:
    """
    Usage:
        advisor = BusinessAdvisor.from_settings()
        result = advisor.get_business_insights("How were sales today?", shop)
    """

    def __init__(self, llm=None, campaign_llm=None):
        self.llm = llm
        self.campaign_llm = campaign_llm or llm
        self.graph = self._create_graph().compile()

    @classmethod
    def from_settings(cls) -> 'BusinessAdvisor':
        if not settings.LLM_API_KEY:
            return cls()
        return cls(
            llm=get_llm(temperature=0.7, max_tokens=500),
            campaign_llm=get_llm(temperature=0.8, max_tokens=150),
        )

    @property
    def is_configured(self) -> bool:
        return self.llm is not None

    def _generate_advice(self, state: AdvisorState) -> Dict[str, Any]:
        prompt = build_context_prompt(state['query'], state['shop_data'], state['analytics'])
        try:
            response = self.llm.invoke([
                SystemMessage(content=ADVISOR_SYSTEM_PROMPT),
                HumanMessage(content=prompt),
            ])
        except Exception as e:
            logger.error(f"AI provider error: {e}")
            return {"error": str(e)}

        return {"success": True, "response": response.content, "message": None}

    def _create_graph(self) -> StateGraph:
        workflow = StateGraph(AdvisorState)

        workflow.add_node("gather_context", gather_context)
        workflow.add_node("generate_advice", self._generate_advice)
        workflow.add_node("handle_error", handle_error)

        workflow.set_entry_point("gather_context")
        workflow.add_conditional_edges(
            "gather_context",
            route_after_step,
            {"continue": "generate_advice", "handle_error": "handle_error"},
        )
        workflow.add_conditional_edges(
            "generate_advice",
            route_after_step,
            {"continue": END, "handle_error": "handle_error"},
        )
        workflow.add_edge("handle_error", END)
        return workflow

    def get_business_insights(self, query: str, shop) -> Dict[str, Any]:
        """
        Answer ``query`` with the shop's current numbers as context.
        Returns {success, response, message}; provider failures are not raised.
        """
        if not self.is_configured:
            return {"success": False, "response": None, "message": NOT_CONFIGURED_MESSAGE}

        logger.info(f"AI query for shop {shop.id}: {truncate_for_display(query, 50)}")
        final_state = self.graph.invoke(create_initial_state(query, shop))
        return {
            "success": final_state.get("success", False),
            "response": final_state.get("response"),
            "message": final_state.get("message"),
        }

    def generate_campaign_message(self, category: str, occasion: str = None, offer: str = None) -> Dict[str, Any]:
        if not self.is_configured:
            return {"success": False, "message": NOT_CONFIGURED_MESSAGE}

        prompt = CAMPAIGN_PROMPT.format(
            category=category,
            occasion=occasion or 'general promotion',
            offer=offer or 'special discount',
        )
        try:
            response = self.campaign_llm.invoke([HumanMessage(content=prompt)])
        except Exception as e:
            logger.error(f"Campaign generation error: {e}")
            return {"success": False, "message": "Error generating campaign"}

        return {"success": True, "message": response.content.strip()}


def get_advisor() -> BusinessAdvisor:
    from django.apps import apps
    return apps.get_app_config('assistant').advisor
