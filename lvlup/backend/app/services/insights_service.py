# backend/app/services/insights_service.py
"""
Behavioral insights over an employee's feedback and goals.

Three analyses (collaboration, sentiment, leadership readiness) are sent to
the Anthropic Messages API concurrently. The model is asked for a JSON
object; anything else, like a provider error, timeout or missing API key,
turns into ``AnalysisUnavailable`` for that analysis only.
"""
import asyncio
import json
from typing import Any, Dict, List, Optional, Sequence

from anthropic import APIError, AsyncAnthropic

from app.core.config import settings
from app.core.logging import logger


class AnalysisUnavailable(Exception):
    """Raised when an analysis could not be produced"""


COLLABORATION_PROMPT = """Analyze the following workplace feedback for collaboration patterns. Look for:

POSITIVE INDICATORS (team player, helpful, collaborative):
- Words like: "team player", "helpful", "collaborative", "supportive", "works well with others"
- Actions: "helped", "assisted", "shared knowledge", "mentored", "facilitated"

NEGATIVE INDICATORS (difficult, unresponsive):
- Words like: "difficult", "unresponsive", "dismissive", "interrupts", "creates tension"
- Behaviors: conflict, poor communication, lack of cooperation

Feedback texts:
{feedback}

Respond with JSON only:
{{
  "collaborationScore": number (0-100),
  "teamPlayerIndicators": ["specific positive examples"],
  "conflictIndicators": ["specific concerning patterns"],
  "riskFlags": ["serious red flags if any"]
}}"""

SENTIMENT_PROMPT = """Analyze workplace feedback for emotional intelligence and concerning behavioral patterns:

EMOTIONAL INTELLIGENCE MARKERS:
- Empathy: "understands", "supportive", "listens", "considerate"
- Communication: "clear communicator", "patient", "explains well"
- Self-awareness: "admits mistakes", "seeks feedback", "grows from criticism"

CONCERNING PATTERNS:
- Dismissive behavior: "dismissive", "doesn't listen", "interrupts"
- Poor communication: "confusing", "unclear", "hard to work with"
- Defensive patterns: "defensive", "blames others", "never wrong"

Feedback texts:
{feedback}

Respond with JSON only:
{{
  "overallSentiment": "positive|neutral|negative",
  "confidence": number (0-1),
  "emotionalIntelligenceMarkers": ["specific examples"],
  "concerningPatterns": ["red flags if any"],
  "keyInsights": ["main behavioral insights"]
}}"""

LEADERSHIP_PROMPT = """Analyze this employee's leadership readiness based on feedback and goals:

LEADERSHIP INDICATORS TO ASSESS:
- Mentoring others (mentioned in feedback)
- Conflict resolution (helping others achieve goals)
- Initiative taking (starting improvements, suggesting solutions)
- Cross-department collaboration
- Knowledge sharing and expertise

FEEDBACK ABOUT THIS PERSON:
{feedback}

THEIR GOALS AND PROGRESS:
{goals}

Respond with JSON only:
{{
  "leadershipReadiness": number (0-100),
  "initiativeScore": number (0-100),
  "knowledgeSharingIndex": number (0-100),
  "crossDepartmentImpact": number (0-100),
  "overallRisingStarScore": number (0-100),
  "recommendedActions": ["specific development suggestions"]
}}"""

# Keys each analysis must return
REQUIRED_KEYS = {
    "collaboration": {"collaborationScore"},
    "sentiment": {"overallSentiment"},
    "leadership": {"leadershipReadiness", "overallRisingStarScore"},
}


def parse_json_reply(text: str) -> Dict[str, Any]:
    """Pull the JSON object out of a model reply (tolerates code fences)"""
    start, end = text.find("{"), text.rfind("}")
    if start == -1 or end <= start:
        raise AnalysisUnavailable("Reply contained no JSON object")
    try:
        data = json.loads(text[start:end + 1])
    except json.JSONDecodeError as e:
        raise AnalysisUnavailable(f"Malformed JSON in reply: {e}")
    if not isinstance(data, dict):
        raise AnalysisUnavailable("Reply JSON is not an object")
    return data


class BehavioralInsightsService:
    """Runs the behavioral analyses against the LLM provider"""

    def __init__(self, client: Optional[AsyncAnthropic] = None):
        if client is None and settings.ANTHROPIC_API_KEY:
            client = AsyncAnthropic(
                api_key=settings.ANTHROPIC_API_KEY,
                base_url=settings.ANTHROPIC_BASE_URL,
                timeout=settings.LLM_TIMEOUT_SECONDS,
                max_retries=0,
            )
        self.client = client
        self.model = settings.ANTHROPIC_MODEL
        self.timeout = settings.LLM_TIMEOUT_SECONDS

    @property
    def is_configured(self) -> bool:
        return self.client is not None

    async def _complete(self, prompt: str, max_tokens: int = 1000) -> str:
        if self.client is None:
            raise AnalysisUnavailable("LLM provider not configured")
        try:
            response = await asyncio.wait_for(
                self.client.messages.create(
                    model=self.model,
                    max_tokens=max_tokens,
                    messages=[{"role": "user", "content": prompt}],
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            raise AnalysisUnavailable("LLM provider timed out")
        except APIError as e:
            raise AnalysisUnavailable(f"LLM provider error: {e.__class__.__name__}")

        texts = [block.text for block in response.content if getattr(block, "type", None) == "text"]
        if not texts:
            raise AnalysisUnavailable("Empty reply from LLM provider")
        return "".join(texts)

    async def _analyze(self, name: str, prompt: str, max_tokens: int = 1000) -> Dict[str, Any]:
        data = parse_json_reply(await self._complete(prompt, max_tokens))
        missing = REQUIRED_KEYS[name] - data.keys()
        if missing:
            raise AnalysisUnavailable(f"Reply is missing {sorted(missing)}")
        return data

    async def analyze_collaboration(self, feedback_texts: Sequence[str]) -> Dict[str, Any]:
        prompt = COLLABORATION_PROMPT.format(feedback="\n\n---\n\n".join(feedback_texts))
        return await self._analyze("collaboration", prompt)

    async def analyze_sentiment(self, feedback_texts: Sequence[str]) -> Dict[str, Any]:
        prompt = SENTIMENT_PROMPT.format(feedback="\n\n---\n\n".join(feedback_texts))
        return await self._analyze("sentiment", prompt)

    async def analyze_leadership(
        self, feedback_texts: Sequence[str], goal_summaries: Sequence[str]
    ) -> Dict[str, Any]:
        prompt = LEADERSHIP_PROMPT.format(
            feedback="\n\n".join(feedback_texts),
            goals="\n\n".join(goal_summaries) or "No goals recorded.",
        )
        return await self._analyze("leadership", prompt, max_tokens=1200)

    async def analyze_employee(
        self, feedback_texts: List[str], goal_summaries: List[str]
    ) -> Dict[str, Dict[str, Any]]:
        """
        Run all analyses concurrently.

        Returns one entry per analysis: ``{"available": True, "data": {...}}``
        or ``{"available": False, "message": ...}``. Never raises for provider
        problems.
        """
        names = ("collaboration", "sentiment", "leadership")
        if not feedback_texts:
            return {
                name: {"available": False, "message": "Not enough feedback to analyze yet."}
                for name in names
            }

        outcomes = await asyncio.gather(
            self.analyze_collaboration(feedback_texts),
            self.analyze_sentiment(feedback_texts),
            self.analyze_leadership(feedback_texts, goal_summaries),
            return_exceptions=True,
        )

        results: Dict[str, Dict[str, Any]] = {}
        for name, outcome in zip(names, outcomes):
            if isinstance(outcome, AnalysisUnavailable):
                logger.warning(f"Behavioral analysis '{name}' unavailable: {outcome}")
                results[name] = {
                    "available": False,
                    "message": "Analysis temporarily unavailable.",
                }
            elif isinstance(outcome, BaseException):
                logger.error(f"Behavioral analysis '{name}' failed", exc_info=outcome)
                results[name] = {
                    "available": False,
                    "message": "Analysis temporarily unavailable.",
                }
            else:
                results[name] = {"available": True, "data": outcome}
        return results
