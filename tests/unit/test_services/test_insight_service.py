"""Unit tests for InsightService with a mocked OpenAI client."""

from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from pfinance.config import settings
from pfinance.core.exceptions import ExternalServiceError
from pfinance.services.insight import InsightService, parse_insights

SUMMARY = {"currency": "EUR", "transactions": 3, "total_income": "1000.00"}

VALID_ANSWER = (
    '{"insights": [{"type": "saving", "title": "Ristoranti", '
    '"description": "Spendi molto in ristoranti", "category": "Ristorazione"}]}'
)


def completion(content: str | None):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


@pytest.fixture
def mock_client():
    client = MagicMock()
    client.chat.completions.create = AsyncMock()
    return client


@pytest.fixture
def service(mock_client):
    svc = InsightService(AsyncMock(spec=AsyncSession), client=mock_client)
    svc.models = ["model-a", "model-b", "model-c"]
    svc.build_financial_summary = AsyncMock(return_value=SUMMARY)
    return svc


class TestGenerate:
    @pytest.mark.asyncio
    async def test_first_model_success(self, service, mock_client):
        mock_client.chat.completions.create.return_value = completion(VALID_ANSWER)

        result = await service.generate()

        assert result.model == "model-a"
        assert result.insights[0].title == "Ristoranti"
        call = mock_client.chat.completions.create.call_args
        assert call.kwargs["temperature"] == settings.ai_temperature
        assert call.kwargs["max_tokens"] == settings.ai_max_tokens

    @pytest.mark.asyncio
    async def test_falls_back_to_next_model(self, service, mock_client):
        mock_client.chat.completions.create.side_effect = [
            RuntimeError("rate limited upstream"),
            completion("not json at all"),
            completion(f"```json\n{VALID_ANSWER}\n```"),
        ]

        result = await service.generate("dove risparmiare?")

        assert result.model == "model-c"
        models_tried = [c.kwargs["model"] for c in mock_client.chat.completions.create.call_args_list]
        assert models_tried == ["model-a", "model-b", "model-c"]
        prompt = mock_client.chat.completions.create.call_args.kwargs["messages"][1]["content"]
        assert "dove risparmiare?" in prompt

    @pytest.mark.asyncio
    async def test_all_models_fail(self, service, mock_client):
        mock_client.chat.completions.create.side_effect = RuntimeError("down")

        with pytest.raises(ExternalServiceError) as exc_info:
            await service.generate()

        assert exc_info.value.error_code == "AI_001"
        assert exc_info.value.http_status == 503
        assert mock_client.chat.completions.create.await_count == 3

    @pytest.mark.asyncio
    async def test_missing_api_key(self):
        svc = InsightService(AsyncMock(spec=AsyncSession))
        svc.build_financial_summary = AsyncMock(return_value=SUMMARY)

        with patch.object(settings, "openrouter_api_key", None):
            with pytest.raises(ExternalServiceError) as exc_info:
                await svc.generate()

        assert exc_info.value.error_code == "AI_002"


class TestChat:
    @pytest.fixture
    def chat_service(self, service):
        stored = []

        async def add(message):
            message.id = len(stored) + 1
            message.created_at = datetime.now(timezone.utc)
            stored.append(message)
            return message

        service.chat_repo = MagicMock()
        service.chat_repo.get_history = AsyncMock(
            return_value=[
                SimpleNamespace(role="user", content="Quanto spendo?"),
                SimpleNamespace(role="assistant", content="Circa 900 euro."),
            ]
        )
        service.chat_repo.add = AsyncMock(side_effect=add)
        service.stored = stored
        return service

    @pytest.mark.asyncio
    async def test_history_is_sent_as_context(self, chat_service, mock_client):
        mock_client.chat.completions.create.return_value = completion("  Riduci i ristoranti.  ")

        reply = await chat_service.chat("s1", "E come risparmio?")

        messages = mock_client.chat.completions.create.call_args.kwargs["messages"]
        assert [m["role"] for m in messages] == ["system", "user", "assistant", "user"]
        assert "1000.00" in messages[0]["content"]
        assert messages[-1]["content"] == "E come risparmio?"
        assert reply.reply.content == "Riduci i ristoranti."
        assert reply.model == "model-a"
        assert [(m.role, m.session_id) for m in chat_service.stored] == [
            ("user", "s1"),
            ("assistant", "s1"),
        ]
        chat_service.db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_empty_answer_falls_back(self, chat_service, mock_client):
        mock_client.chat.completions.create.side_effect = [completion("   "), completion("Ok")]

        reply = await chat_service.chat("s1", "Ciao")

        assert reply.model == "model-b"
        assert chat_service.stored[-1].model == "model-b"

    @pytest.mark.asyncio
    async def test_nothing_stored_when_all_models_fail(self, chat_service, mock_client):
        mock_client.chat.completions.create.side_effect = RuntimeError("down")

        with pytest.raises(ExternalServiceError) as exc_info:
            await chat_service.chat("s1", "Ciao")

        assert exc_info.value.error_code == "AI_001"
        chat_service.chat_repo.add.assert_not_awaited()
        chat_service.db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_summary_does_not_require_transactions(self, chat_service, mock_client):
        mock_client.chat.completions.create.return_value = completion("Ok")

        await chat_service.chat("s1", "Ciao")

        chat_service.build_financial_summary.assert_awaited_once_with(require_data=False)


class TestParseInsights:
    def test_plain_json(self):
        assert len(parse_insights(VALID_ANSWER)) == 1

    def test_json_embedded_in_prose(self):
        insights = parse_insights(f"Ecco la mia analisi:\n{VALID_ANSWER}\nSpero sia utile.")
        assert insights[0].category == "Ristorazione"

    def test_items_without_title_are_dropped(self):
        text = '{"insights": [{"description": "x"}, {"title": "T", "description": "D"}]}'
        insights = parse_insights(text)
        assert [i.title for i in insights] == ["T"]
        assert insights[0].type == "tip"

    @pytest.mark.parametrize("text", ["", None, "no json", '{"insights": []}', '{"other": 1}'])
    def test_unusable_answers(self, text):
        with pytest.raises(ValueError):
            parse_insights(text)
