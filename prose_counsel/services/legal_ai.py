"""
ProSe Counsel - Legal AI Service
Document analysis, pleading-sufficiency review, drafting and guidance
through an OpenAI-compatible chat-completions API.

Every structured call asks for a JSON object and validates it against a
pydantic model; anything else (transport error, non-200, empty or
malformed output) raises AnalysisUnavailable. Only learn_from_document
swallows failures, returning None.
"""

import json
import logging
from typing import Any, Literal, Optional, TypeVar

import httpx
import pydantic
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from prose_counsel.core.config import Settings, get_settings
from prose_counsel.core.errors import AnalysisUnavailable

logger = logging.getLogger(__name__)


LEGAL_ASSISTANT_SYSTEM_PROMPT = (
    "You are an expert litigator and paralegal with a specialization in the US "
    "Constitution and civil rights law under 42 U.S.C. 1983. Your task is to analyze "
    "legal documents, identify key arguments, cite specific facts from the provided "
    "text, and draft compelling, aggressive, and precise legal arguments. All responses "
    "must be formatted for use in federal court filings. Do not be conversational; be "
    "professional, adversarial, and meticulous."
)

DOCUMENT_FORMAT_RULES = """Format all legal documents with:
- 14pt font, double-spaced body text
- 20pt centered bold H1 headers
- 18pt centered bold H2 headers
- 16pt left-justified H3 headers
- Proper case caption and title formatting
- Professional legal language and structure"""

LEARNING_SYSTEM_PROMPT = (
    "You are a learning system that analyzes legal documents to extract patterns, "
    "best practices, and improvements for future document generation. Focus on what "
    "makes documents effective and compliant."
)

# Characters of document text sent to the learning call
LEARNING_EXCERPT_CHARS = 2000

MAX_TOKENS_ANALYSIS = 4096
MAX_TOKENS_GENERATION = 8192
MAX_TOKENS_LEARNING = 2048


# =============================================================================
# Result Models
# =============================================================================

class AIResult(BaseModel):
    """Model output is camelCase JSON; unknown keys are kept."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class Parties(AIResult):
    plaintiff: str = "unknown"
    defendant: str = "unknown"


class DocumentAnalysis(AIResult):
    summary: str
    key_issues: list[str] = Field(default_factory=list)
    parties: Parties = Field(default_factory=Parties)
    legal_claims: list[str] = Field(default_factory=list)
    citations: list[str] = Field(default_factory=list)
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


Assessment = Literal["pass", "fail", "needs_improvement"]


class ClaimFinding(AIResult):
    claim: str
    assessment: Optional[str] = None
    reasoning: str = ""
    plausibility: str = ""
    suggestions: list[str] = Field(default_factory=list)


class RequiredElement(AIResult):
    element: str
    present: bool
    explanation: str = ""


class ComplianceResult(AIResult):
    overall_assessment: Assessment
    score: int = Field(..., ge=0, le=100)
    findings: list[ClaimFinding] = Field(default_factory=list)
    required_elements: list[RequiredElement] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


class LegalGuidance(AIResult):
    answer: str = ""
    sources: list[str] = Field(default_factory=list)
    next_steps: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class LearningPatterns(AIResult):
    effective_patterns: list[str] = Field(default_factory=list)
    issues_found: list[str] = Field(default_factory=list)
    jurisdiction_specific_rules: list[str] = Field(default_factory=list)
    document_type_guidelines: list[str] = Field(default_factory=list)
    improvement_suggestions: list[str] = Field(default_factory=list)


ResultT = TypeVar("ResultT", bound=AIResult)


# =============================================================================
# Service
# =============================================================================

class LegalAIService:
    """
    Chat-completions client for legal analysis.

    Args:
        settings: defaults to get_settings()
        transport: optional httpx transport (tests pass httpx.MockTransport)
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = settings or get_settings()
        self.api_key = settings.openai_api_key
        self.model = settings.openai_model
        self.api_url = settings.openai_base_url.rstrip("/") + "/chat/completions"
        self.timeout = settings.openai_timeout_seconds
        self._transport = transport

    @property
    def is_available(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    async def analyze_document(self, content: str, document_type: str, jurisdiction: str) -> DocumentAnalysis:
        logger.info("Analyzing %s document (%d chars)", document_type, len(content))
        prompt = f"""Analyze this {document_type} document from {jurisdiction} jurisdiction and provide a comprehensive analysis in JSON format.

Document Content:
{content}

Provide analysis in this exact JSON structure:
{{
  "summary": "Brief overview of the document",
  "keyIssues": ["List of key legal issues identified"],
  "parties": {{"plaintiff": "name or unknown", "defendant": "name or unknown"}},
  "legalClaims": ["List of legal claims or causes of action"],
  "citations": ["Relevant case law and statutes cited in the document"],
  "strengths": ["Strong points in the document"],
  "weaknesses": ["Potential weaknesses or issues"],
  "recommendations": ["Specific recommendations for improvement"]
}}"""
        return await self._complete_json(
            "document analysis", LEGAL_ASSISTANT_SYSTEM_PROMPT, prompt,
            MAX_TOKENS_ANALYSIS, DocumentAnalysis,
        )

    async def check_compliance_rule(self, content: str, jurisdiction: str) -> ComplianceResult:
        """Rule 12(b)(6) review under the Twombly/Iqbal plausibility standard."""
        logger.info("Checking Rule 12(b)(6) compliance (%d chars)", len(content))
        prompt = f"""Analyze this complaint from {jurisdiction} jurisdiction for Rule 12(b)(6) compliance under the Twombly/Iqbal plausibility standard.

Complaint Content:
{content}

Provide analysis in this exact JSON structure:
{{
  "overallAssessment": "pass" or "fail" or "needs_improvement",
  "score": 75,
  "findings": [
    {{
      "claim": "name of claim",
      "assessment": "pass or fail or needs_improvement",
      "reasoning": "detailed explanation",
      "plausibility": "whether claim is plausible under Twombly/Iqbal",
      "suggestions": ["specific improvements needed"]
    }}
  ],
  "requiredElements": [
    {{
      "element": "element name",
      "present": true,
      "explanation": "why it is or is not adequately pled"
    }}
  ],
  "recommendations": ["Overall recommendations to strengthen the complaint"]
}}"""
        return await self._complete_json(
            "compliance check", LEGAL_ASSISTANT_SYSTEM_PROMPT, prompt,
            MAX_TOKENS_ANALYSIS, ComplianceResult,
        )

    async def generate_document(
        self,
        document_type: str,
        jurisdiction: str,
        plaintiff: str,
        defendant: str,
        case_info: Optional[dict[str, Any]],
        instructions: str,
    ) -> str:
        """Draft a court-ready document. Returns the model's free text."""
        logger.info("Generating %s for %s", document_type, jurisdiction)
        system = f"{LEGAL_ASSISTANT_SYSTEM_PROMPT}\n\n{DOCUMENT_FORMAT_RULES}"
        prompt = f"""Generate a complete {document_type} for the following case:

Jurisdiction: {jurisdiction}
Plaintiff: {plaintiff}
Defendant: {defendant}

Case Information:
{json.dumps(case_info or {}, indent=2, default=str)}

Specific Instructions:
{instructions}

Generate a complete, court-ready document with proper formatting, legal citations, and structure. Include all necessary sections and ensure compliance with {jurisdiction} court rules."""
        text = await self._complete(
            "document generation", system, prompt, MAX_TOKENS_GENERATION, json_mode=False
        )
        logger.info("Document generated (%d chars)", len(text))
        return text

    async def get_guidance(
        self,
        question: str,
        jurisdiction: str,
        case_context: Optional[dict[str, Any]] = None,
    ) -> LegalGuidance:
        logger.info("Getting legal guidance for %s", jurisdiction)
        context_info = ""
        if case_context:
            context_info = f"\n\nCase Context:\n{json.dumps(case_context, indent=2, default=str)}"
        prompt = f"""{question}{context_info}

Provide a comprehensive answer in this exact JSON format:
{{
  "answer": "Your detailed answer with legal analysis",
  "sources": ["List of specific citations and authorities"],
  "nextSteps": ["Practical action items"],
  "warnings": ["Important cautions or considerations"]
}}

Include:
1. Clear explanation of the legal principles
2. Specific citations to statutes, rules, or case law
3. Practical steps the person should take
4. Important deadlines or considerations
5. Warnings about potential pitfalls"""
        return await self._complete_json(
            "legal guidance", LEGAL_ASSISTANT_SYSTEM_PROMPT, prompt,
            MAX_TOKENS_GENERATION, LegalGuidance,
        )

    async def learn_from_document(
        self,
        document_type: str,
        jurisdiction: str,
        content: str,
        compliance: Optional[dict[str, Any]],
    ) -> Optional[LearningPatterns]:
        """Extract reusable drafting patterns. Returns None on any failure."""
        prompt = f"""Analyze this {document_type} from {jurisdiction} and extract learning patterns.

Document Content Summary (first {LEARNING_EXCERPT_CHARS} chars):
{content[:LEARNING_EXCERPT_CHARS]}

Compliance Results:
{json.dumps(compliance, indent=2, default=str)}

Extract patterns in this exact JSON format:
{{
  "effectivePatterns": ["Patterns that worked well"],
  "issuesFound": ["Common issues to avoid"],
  "jurisdictionSpecificRules": ["Specific rules for {jurisdiction}"],
  "documentTypeGuidelines": ["Guidelines for {document_type}"],
  "improvementSuggestions": ["How to improve future documents"]
}}"""
        try:
            return await self._complete_json(
                "learning", LEARNING_SYSTEM_PROMPT, prompt, MAX_TOKENS_LEARNING, LearningPatterns
            )
        except AnalysisUnavailable as e:
            logger.warning("Learning extraction skipped: %s", e.details or e.message)
            return None

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    async def _complete_json(
        self, label: str, system: str, prompt: str, max_tokens: int, model: type[ResultT]
    ) -> ResultT:
        text = await self._complete(label, system, prompt, max_tokens, json_mode=True)
        try:
            result = model.model_validate(json.loads(text))
        except (json.JSONDecodeError, pydantic.ValidationError) as e:
            logger.error("%s returned malformed output: %s", label, e)
            raise AnalysisUnavailable(f"Failed to {label}: malformed model output", details=str(e)) from e
        logger.info("%s complete", label.capitalize())
        return result

    async def _complete(
        self, label: str, system: str, prompt: str, max_tokens: int, json_mode: bool
    ) -> str:
        """One chat-completions round trip; returns the assistant message text."""
        if not self.is_available:
            raise AnalysisUnavailable(f"Failed to {label}: OPENAI_API_KEY is not configured")

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            "max_tokens": max_tokens,
        }
        if json_mode:
            payload["response_format"] = {"type": "json_object"}

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.api_url, headers=headers, json=payload)
        except httpx.HTTPError as e:
            logger.error("%s request failed: %s", label, e)
            raise AnalysisUnavailable(f"Failed to {label}", details=str(e)) from e

        if response.status_code != 200:
            logger.error("%s API error: %s - %s", label, response.status_code, response.text[:500])
            raise AnalysisUnavailable(
                f"Failed to {label}",
                details=f"API error {response.status_code}",
            )

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise AnalysisUnavailable(f"Failed to {label}: unexpected response shape", details=str(e)) from e
        if not content:
            raise AnalysisUnavailable(f"Failed to {label}: model returned empty response")
        return content


# Singleton instance
_legal_ai: Optional[LegalAIService] = None


def get_legal_ai() -> LegalAIService:
    """Get or create the process-wide LegalAIService (FastAPI dependency)."""
    global _legal_ai
    if _legal_ai is None:
        _legal_ai = LegalAIService()
    return _legal_ai
