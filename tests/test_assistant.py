"""
Tests for the AI business advisor workflow
"""
import pytest
from django.apps import apps
from langchain_core.language_models.fake_chat_models import FakeListChatModel

from apps.assistant.graph import NOT_CONFIGURED_MESSAGE, PROVIDER_ERROR_MESSAGE, BusinessAdvisor
from apps.assistant.prompts import COMMON_QUESTIONS, build_context_prompt, get_suggested_questions

pytestmark = pytest.mark.django_db


class BrokenLLM:
    def invoke(self, messages):
        raise RuntimeError("provider down")


@pytest.fixture
def advisor(monkeypatch):
    """Install an advisor backed by a canned chat model."""
    def install(llm):
        advisor = BusinessAdvisor(llm=llm)
        monkeypatch.setattr(apps.get_app_config('assistant'), 'advisor', advisor)
        return advisor
    return install


class TestBusinessAdvisor:

    def test_insights(self, shop, products):
        advisor = BusinessAdvisor(llm=FakeListChatModel(responses=["Restock rice before the weekend."]))

        result = advisor.get_business_insights("What should I restock?", shop)

        assert result == {"success": True, "response": "Restock rice before the weekend.", "message": None}

    def test_not_configured(self, shop):
        result = BusinessAdvisor().get_business_insights("Anything?", shop)

        assert result["success"] is False
        assert result["message"] == NOT_CONFIGURED_MESSAGE

    def test_provider_failure_is_reported(self, shop):
        result = BusinessAdvisor(llm=BrokenLLM()).get_business_insights("Anything?", shop)

        assert result == {"success": False, "response": None, "message": PROVIDER_ERROR_MESSAGE}

    def test_campaign_message_is_trimmed(self):
        advisor = BusinessAdvisor(llm=FakeListChatModel(responses=["  Diwali dhamaka! 20% off 🎉  "]))

        result = advisor.generate_campaign_message('kirana', occasion='Diwali', offer='20% off')

        assert result == {"success": True, "message": "Diwali dhamaka! 20% off 🎉"}

    def test_campaign_message_failure(self):
        result = BusinessAdvisor(llm=BrokenLLM()).generate_campaign_message('kirana')

        assert result == {"success": False, "message": "Error generating campaign"}


class TestPrompts:

    def test_category_questions_follow_common_ones(self):
        questions = get_suggested_questions('kirana')

        assert questions[:len(COMMON_QUESTIONS)] == COMMON_QUESTIONS
        assert len(questions) > len(COMMON_QUESTIONS)

    def test_unknown_category_gets_common_questions(self):
        assert get_suggested_questions('space-travel') == COMMON_QUESTIONS

    def test_context_prompt_carries_numbers(self):
        prompt = build_context_prompt(
            "How are sales?",
            {'shopName': 'Kirana', 'category': 'kirana'},
            {
                'totalProducts': 2, 'totalOrders': 5, 'totalRevenue': 650,
                'todaySales': 130, 'weekSales': 400, 'monthSales': 650,
                'topProducts': [], 'lowStockProducts': [],
            },
        )

        assert 'How are sales?' in prompt
        assert 'Kirana' in prompt


class TestAIEndpoints:

    def test_query_meters_on_success(self, auth_client, account, shop, advisor):
        advisor(FakeListChatModel(responses=["Sell more dal."]))

        response = auth_client.post('/api/ai/query/', {'query': 'How do I grow?'}, format='json')

        assert response.status_code == 200
        assert response.json()['response'] == 'Sell more dal.'
        account.refresh_from_db()
        assert account.ai_queries_this_month == 1

    def test_unconfigured_query_is_not_metered(self, auth_client, account, shop):
        response = auth_client.post('/api/ai/query/', {'query': 'How do I grow?'}, format='json')

        assert response.status_code == 200
        assert response.json()['success'] is False
        account.refresh_from_db()
        assert account.ai_queries_this_month == 0

    def test_query_over_limit(self, auth_client, account, shop, advisor):
        advisor(FakeListChatModel(responses=["unused"]))
        account.ai_queries_this_month = account.ai_queries
        account.save()

        response = auth_client.post('/api/ai/query/', {'query': 'How do I grow?'}, format='json')

        assert response.status_code == 403
        assert response.json()['limitExceeded'] is True

    def test_suggestions(self, auth_client, shop):
        response = auth_client.get('/api/ai/suggestions/')

        assert response.status_code == 200
        assert response.json()['suggestions'] == get_suggested_questions('kirana')

    def test_campaign_message_endpoint(self, auth_client, account, shop, advisor):
        advisor(FakeListChatModel(responses=["Holi special: 10% off on all sweets!"]))

        response = auth_client.post(
            '/api/ai/campaign-message/', {'occasion': 'Holi', 'offer': '10% off'}, format='json'
        )

        assert response.status_code == 200
        assert response.json() == {'success': True, 'message': 'Holi special: 10% off on all sweets!'}
        account.refresh_from_db()
        assert account.ai_queries_this_month == 1
