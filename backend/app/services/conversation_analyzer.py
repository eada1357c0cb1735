"""
GPT Conversation Analysis Service

Uses the OpenAI chat completions API on a Whisper transcript to:
1. Split the text into speaker turns labelled S1 (first speaker) / S2 (second speaker)
2. Extract short facts each speaker stated about themselves
3. Write a short summary of the chunk
"""
import json
import logging
import re
from typing import Dict, List

import httpx

from ..config import settings

logger = logging.getLogger(__name__)

FALLBACK_SUMMARY_CHARS = 280


class ConversationAnalyzer:
    """GPT Conversation Analysis Service"""

    def __init__(self):
        self.api_key = settings.openai_api_key
        self.model = settings.gpt_model
        self.api_url = settings.gpt_api_url

    def is_available(self) -> bool:
        """Check if API key is configured"""
        return bool(self.api_key) and settings.enable_gpt_analysis

    async def analyze(self, raw_text: str, language: str | None = None) -> Dict:
        """
        Analyze one chunk's transcript

        Returns:
            {
                "transcript": [{"speaker": "S1", "text": "..."}, {"speaker": "S2", "text": "..."}],
                "S1_facts": ["..."],
                "S2_facts": ["..."],
                "summary": "..."
            }
        """
        if not raw_text.strip():
            return {"transcript": [], "S1_facts": [], "S2_facts": [], "summary": ""}

        if not self.is_available():
            return self._fallback(raw_text)

        try:
            user_prompt = f"""This is the COMPLETE raw transcript of ONE audio chunk{f' (language: {language})' if language else ''}. Analyze ONLY this text:

Raw transcript:
{raw_text}

(End of transcript)"""

            headers = {
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json"
            }

            payload = {
                "model": self.model,
                "messages": [
                    {"role": "system", "content": self._build_system_prompt()},
                    {"role": "user", "content": user_prompt}
                ],
                "temperature": 0.0,
                "response_format": {"type": "json_object"}
            }

            logger.info("[analyzer] Calling %s to analyze %d chars...", self.model, len(raw_text))
            async with httpx.AsyncClient(timeout=90) as client:
                resp = await client.post(self.api_url, headers=headers, json=payload)
                resp.raise_for_status()
                result = resp.json()

            content = result["choices"][0]["message"]["content"]
            analysis = json.loads(content)
            if not isinstance(analysis, dict) or not isinstance(analysis.get("transcript"), list):
                raise ValueError("analysis is missing a transcript list")

            logger.info("[analyzer] %d turns, %d/%d facts",
                        len(analysis["transcript"]),
                        len(analysis.get("S1_facts") or []),
                        len(analysis.get("S2_facts") or []))
            return analysis

        except (httpx.HTTPError, KeyError, IndexError, ValueError) as e:
            logger.warning("[analyzer] GPT analysis failed, using plain transcript: %s", e)
            return self._fallback(raw_text)

    def _build_system_prompt(self) -> str:
        """Build GPT system prompt"""

        return """You analyze ONE recorded conversation chunk between at most two people.

⛔ FORBIDDEN:
❌ Do NOT invent sentences, facts or context that are not in the transcript
❌ Do NOT paraphrase what was said in the transcript turns

✅ REQUIRED:
1. Split the text into turns and label each turn "S1" or "S2".
   S1 is whoever speaks FIRST in this chunk, S2 is the other person.
   If only one person speaks, every turn is "S1".
2. Remove ONLY meaningless fillers ("uh", "um").
3. List short facts each speaker states about themselves (job, plans, preferences, people they mention).
4. Write a 1-3 sentence summary of the chunk.

Output format (JSON):
{
  "transcript": [
    {"speaker": "S1", "text": "Hey, how was the trip to Lisbon?"},
    {"speaker": "S2", "text": "Great, I start the new job on Monday though."}
  ],
  "S1_facts": [],
  "S2_facts": ["Recently travelled to Lisbon", "Starts a new job on Monday"],
  "summary": "Catch-up about a trip to Lisbon and an upcoming job change."
}"""

    def _fallback(self, text: str) -> Dict:
        """No diarization available: every sentence goes to the first speaker, no facts"""
        sentences = self._simple_split(text)
        summary = text.strip()
        if len(summary) > FALLBACK_SUMMARY_CHARS:
            summary = summary[:FALLBACK_SUMMARY_CHARS].rsplit(" ", 1)[0] + "..."
        return {
            "transcript": [{"speaker": "S1", "text": s} for s in sentences],
            "S1_facts": [],
            "S2_facts": [],
            "summary": summary,
        }

    def _simple_split(self, text: str) -> List[str]:
        """Simple sentence splitting, keeps the closing punctuation"""
        sentences = re.findall(r'[^.!?。！？]+[.!?。！？]*', text)
        return [s.strip() for s in sentences if s.strip()]


# Global singleton
conversation_analyzer = ConversationAnalyzer()
