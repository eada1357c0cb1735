"""
Unit tests for services.asr_openai_adapter module.
Tests Whisper parameter construction, per-chunk analysis and single-file persistence.
"""
import pytest
from unittest.mock import AsyncMock, patch, MagicMock
from app.models.conversation import Conversation, ConversationStatus
from app.models.transcript import TranscriptTurn
from app.services.asr_openai_adapter import OpenAIWhisperService, WhisperTranscript
from app.services.conversation_gateway import ConversationGateway


def _whisper_client(mock_client_class, json_response):
    mock_response = MagicMock()
    mock_response.json.return_value = json_response
    mock_response.raise_for_status = MagicMock()

    mock_post = AsyncMock(return_value=mock_response)
    mock_client = AsyncMock()
    mock_client.__aenter__.return_value.post = mock_post
    mock_client_class.return_value = mock_client
    return mock_post


def _analyzer(payload):
    analyzer = MagicMock()
    analyzer.analyze = AsyncMock(return_value=payload)
    return analyzer


class TestOpenAIWhisperAdapter:
    """Tests for the Whisper HTTP call."""

    def test_is_available_with_api_key(self):
        with patch('app.services.asr_openai_adapter.settings') as mock_settings:
            mock_settings.openai_api_key = "test-key-123"
            assert OpenAIWhisperService().is_available() is True

    def test_is_available_without_api_key(self):
        with patch('app.services.asr_openai_adapter.settings') as mock_settings:
            mock_settings.openai_api_key = None
            assert OpenAIWhisperService().is_available() is False

    @pytest.mark.asyncio
    async def test_transcribe_without_key_raises(self):
        with patch('app.services.asr_openai_adapter.settings') as mock_settings:
            mock_settings.openai_api_key = None
            with pytest.raises(RuntimeError, match="API key not configured"):
                await OpenAIWhisperService().transcribe("test.wav")

    @pytest.mark.asyncio
    async def test_transcribe_calls_openai_api(self):
        with patch('app.services.asr_openai_adapter.settings') as mock_settings, \
             patch('httpx.AsyncClient') as mock_client_class, \
             patch('builtins.open', create=True):
            mock_settings.openai_api_key = "test-key"
            mock_settings.whisper_api_url = "https://api.openai.com/v1/audio/transcriptions"
            mock_settings.whisper_model = "whisper-1"
            mock_post = _whisper_client(
                mock_client_class, {"text": " Hello world ", "language": "english", "duration": 2.0}
            )

            result = await OpenAIWhisperService().transcribe(audio_path="test.wav", language="en")

        assert result == WhisperTranscript(text="Hello world", language="english", duration_sec=2.0)
        data = mock_post.call_args[1]["data"]
        assert data == {
            "model": "whisper-1",
            "response_format": "verbose_json",
            "temperature": 0.0,
            "language": "en",
        }
        assert mock_post.call_args[1]["headers"] == {"Authorization": "Bearer test-key"}

    @pytest.mark.asyncio
    async def test_transcribe_handles_api_error(self):
        with patch('app.services.asr_openai_adapter.settings') as mock_settings, \
             patch('httpx.AsyncClient') as mock_client_class, \
             patch('builtins.open', create=True):
            mock_settings.openai_api_key = "test-key"
            mock_client = AsyncMock()
            mock_client.__aenter__.return_value.post = AsyncMock(side_effect=Exception("API Error"))
            mock_client_class.return_value = mock_client

            with pytest.raises(Exception, match="API Error"):
                await OpenAIWhisperService().transcribe(audio_path="test.wav")


@pytest.mark.asyncio
@pytest.mark.usefixtures("db")
class TestChunkPipeline:
    """Tests for transcribe_chunk_only and batch_transcribe with Whisper and ffmpeg mocked."""

    @pytest.fixture
    def wav_file(self, tmp_path):
        path = tmp_path / "converted.wav"
        path.write_bytes(b"RIFF....WAVE")
        return path

    async def test_transcribe_chunk_only(self, store, upload, create_user, wav_file):
        me, _ = await create_user()
        ref = await upload(me)
        analyzer = _analyzer({
            "transcript": [{"speaker": "S1", "text": "Hi"}, {"speaker": "S2", "text": "Hey"}],
            "S1_facts": ["a"],
            "S2_facts": [],
            "summary": "Greeting.",
        })
        service = OpenAIWhisperService(store=store, analyzer=analyzer)

        with patch('app.services.asr_openai_adapter.to_wav_16k_mono', return_value=str(wav_file)) as convert, \
             patch.object(service, 'transcribe', AsyncMock(return_value=WhisperTranscript("Hi. Hey.", "en", 1.5))):
            result = await service.transcribe_chunk_only(ref)

        stored = await store.get(ref)
        convert.assert_called_once_with(stored.path)
        analyzer.analyze.assert_awaited_once_with("Hi. Hey.", "en")
        assert [t.text for t in result.transcript] == ["Hi", "Hey"]
        assert result.s1_facts == ["a"]
        assert result.summary == "Greeting."
        assert not wav_file.exists()

    async def test_converted_wav_removed_on_whisper_failure(self, store, upload, create_user, wav_file):
        me, _ = await create_user()
        ref = await upload(me)
        service = OpenAIWhisperService(store=store, analyzer=_analyzer({}))

        with patch('app.services.asr_openai_adapter.to_wav_16k_mono', return_value=str(wav_file)), \
             patch.object(service, 'transcribe', AsyncMock(side_effect=RuntimeError("timeout"))):
            with pytest.raises(RuntimeError):
                await service.transcribe_chunk_only(ref)

        assert not wav_file.exists()

    async def test_batch_transcribe_persists(self, store, upload, create_user, wav_file):
        me, _ = await create_user()
        friend, _ = await create_user()
        ref = await upload(me)
        gateway = ConversationGateway()
        created = await gateway.create(me.id, "Park")
        await gateway.link_participant(created.id, friend.id)
        analyzer = _analyzer({
            "transcript": [{"speaker": "S1", "text": "Hi"}, {"speaker": "S2", "text": "Hey"}],
            "S1_facts": ["a", "a"],
            "S2_facts": ["b"],
            "summary": "Greeting.",
        })
        service = OpenAIWhisperService(store=store, analyzer=analyzer, gateway=gateway)

        with patch('app.services.asr_openai_adapter.to_wav_16k_mono', return_value=str(wav_file)), \
             patch.object(service, 'transcribe', AsyncMock(return_value=WhisperTranscript("Hi. Hey."))):
            await service.batch_transcribe(ref, created.id, "Ana", "Ben")

        conv = await Conversation.get(id=created.id)
        assert conv.status == ConversationStatus.ENDED
        assert conv.initiator_facts == ["a"]
        assert conv.participant_facts == ["b"]
        assert (conv.initiator_name, conv.participant_name) == ("Ana", "Ben")
        rows = await TranscriptTurn.filter(conversation_id=conv.id).order_by("seq")
        assert [r.user_id for r in rows] == [me.id, friend.id]

    async def test_malformed_analysis_raises(self, store, upload, create_user, wav_file):
        me, _ = await create_user()
        ref = await upload(me)
        service = OpenAIWhisperService(store=store, analyzer=_analyzer({"transcript": [], "S1_facts": 5}))

        with patch('app.services.asr_openai_adapter.to_wav_16k_mono', return_value=str(wav_file)), \
             patch.object(service, 'transcribe', AsyncMock(return_value=WhisperTranscript("Hi."))):
            with pytest.raises(ValueError, match="facts must be a list"):
                await service.transcribe_chunk_only(ref)
