"""
Memory Extractor

Finds durable facts about the user in what they wrote. Cheap bilingual
pattern matching runs first; only when it finds nothing and the message
looks personal is the language model asked for a structured extraction.
"""

import logging
import re
from dataclasses import asdict
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel

from application.services.memory.validation import validate_memories
from application.services.openai_sdk_service import OpenAISDKService
from application.services.retrieval.models import ExtractedMemory
from common.config import config

logger = logging.getLogger(__name__)

EXTRACTION_TEMPERATURE = 0.3
EXTRACTION_MAX_TOKENS = 1000

EXTRACTION_SYSTEM_PROMPT = """You are a memory extraction system for an AI assistant called Bakame.
Your job is to identify important information about the user that should be remembered for future conversations.

Extract ONLY information that:
1. Is explicitly stated by the user (not assumed)
2. Would be useful in future conversations
3. Is not already in existing memories

Categories:
- personal: name, location, family, age
- business: job, company, projects
- preferences: likes, dislikes, communication style
- technical: tools, languages, expertise
- goals: what they want to achieve
- context: temporary but relevant info

Types:
- fact: Definite information (name, location, occupation)
- preference: Likes, dislikes, preferences
- context: Situational info that may change
- goal: Objectives or intentions

If nothing is worth remembering, return an empty list of memories."""

NAME_PATTERNS = [
    re.compile(
        r"(?:my name is|i'm called|call me|nitwa|izina ryange ni)\s+([A-Z][a-z]+(?:\s+[A-Z][a-z]+)?)",
        re.IGNORECASE,
    ),
    re.compile(r"(?:i am|i'm)\s+((?-i:[A-Z][a-z]+))\b", re.IGNORECASE),
]

LOCATION_PATTERNS = [
    re.compile(
        r"(?:i live in|i'm from|i am from|ntuye|mba)\s+([A-Z][a-z]+(?:\s+[A-Z][a-z]+)?)",
        re.IGNORECASE,
    ),
    re.compile(
        r"(?:in|from)\s+(Kigali|Musanze|Huye|Rubavu|Muhanga|Butare|Gisenyi|Ruhengeri|Nyagatare)",
        re.IGNORECASE,
    ),
]

OCCUPATION_PATTERNS = [
    re.compile(
        r"(?:i am a|i'm a|i work as a?|ndi)\s+"
        r"([\w\s]+(?:farmer|developer|teacher|doctor|engineer|student|business|entrepreneur))",
        re.IGNORECASE,
    ),
    re.compile(r"(?:my job is|my work is|akazi kange ni)\s+([\w\s]+)", re.IGNORECASE),
]

PREFERENCE_PATTERN = re.compile(r"(?:i prefer|i like|nkunda|ndakunda)\s+([^.!?]+)", re.IGNORECASE)

MEMORY_INDICATORS = [
    re.compile(r"\b(i am|i'm|i have|i work|i live|my|mine)\b", re.IGNORECASE),
    re.compile(r"\b(ndi|mfite|ntuye|akazi kange|izina ryange)\b", re.IGNORECASE),
    re.compile(r"\d+\s*(years?|hectares?|employees?|rwf|frw|\$)", re.IGNORECASE),
    re.compile(r"\b(i want|i need|i plan|ndashaka|nifuza)\b", re.IGNORECASE),
]


class MemoryCandidate(BaseModel):
    content: str
    type: str
    category: Optional[str]
    confidence: Optional[float]
    reasoning: Optional[str]


class MemoryExtractionOutput(BaseModel):
    memories: List[MemoryCandidate]


def _first_match(patterns: Sequence[re.Pattern], message: str) -> Optional[re.Match]:
    for pattern in patterns:
        match = pattern.search(message)
        if match and match.group(1):
            return match
    return None


def extract_by_patterns(message: str) -> List[ExtractedMemory]:
    """Name, location, occupation and preference statements, at most one each.

    Results go through the same validation as model output.
    """
    memories: List[ExtractedMemory] = []

    for pattern in NAME_PATTERNS:
        match = pattern.search(message)
        if match and len(match.group(1)) > 2:
            memories.append(
                ExtractedMemory(
                    content=f"User's name is {match.group(1)}",
                    type="fact",
                    category="personal",
                    confidence=0.9,
                    reasoning="User explicitly stated their name",
                )
            )
            break

    match = _first_match(LOCATION_PATTERNS, message)
    if match:
        memories.append(
            ExtractedMemory(
                content=f"User is located in {match.group(1)}",
                type="fact",
                category="personal",
                confidence=0.85,
                reasoning="User mentioned their location",
            )
        )

    for pattern in OCCUPATION_PATTERNS:
        match = pattern.search(message)
        if match and match.group(1) and len(match.group(1)) < 50:
            memories.append(
                ExtractedMemory(
                    content=f"User works as {match.group(1).strip()}",
                    type="fact",
                    category="business",
                    confidence=0.85,
                    reasoning="User mentioned their occupation",
                )
            )
            break

    match = PREFERENCE_PATTERN.search(message)
    if match and match.group(1).strip():
        memories.append(
            ExtractedMemory(
                content=f"User prefers {match.group(1).strip()}",
                type="preference",
                category="preferences",
                confidence=0.8,
                reasoning="User stated a preference",
            )
        )

    return validate_memories([asdict(memory) for memory in memories])


def might_contain_memory(message: str) -> bool:
    """Self-references, quantities or intentions worth a model call."""
    return any(pattern.search(message) for pattern in MEMORY_INDICATORS)


class MemoryExtractor:
    """Pattern-first memory extraction with a structured-output fallback."""

    def __init__(self, provider: OpenAISDKService, model_name: Optional[str] = None):
        self.provider = provider
        self.model_name = model_name or config.MEMORY_EXTRACTION_MODEL

    async def extract_memories(
        self,
        user_messages: Sequence[str],
        assistant_messages: Sequence[str] = (),
        existing_memories: Sequence[str] = (),
    ) -> List[ExtractedMemory]:
        """Ask the model for memories in a conversation excerpt.

        Raises:
            UpstreamProviderError: If the provider call fails
        """
        if not user_messages:
            return []

        turns = []
        for index, message in enumerate(user_messages):
            text = f"User: {message}"
            if index < len(assistant_messages) and assistant_messages[index]:
                text += f"\nAssistant: {assistant_messages[index]}"
            turns.append(text)

        system_prompt = EXTRACTION_SYSTEM_PROMPT
        if existing_memories:
            listed = "\n".join(f"- {memory}" for memory in existing_memories)
            system_prompt += f"\n\nExisting memories (avoid duplicates):\n{listed}"

        output = await self.provider.generate_structured_output(
            prompt="Analyze this conversation:\n\n" + "\n\n".join(turns),
            schema=MemoryExtractionOutput,
            system_instruction=system_prompt,
            temperature=EXTRACTION_TEMPERATURE,
            model_name=self.model_name,
            max_tokens=EXTRACTION_MAX_TOKENS,
        )
        if output is None:
            return []

        raw: List[Dict] = [candidate.model_dump() for candidate in output.memories]
        memories = validate_memories(raw)
        logger.debug(f"Model extracted {len(memories)} of {len(raw)} memory candidates")
        return memories

    async def extract_from_message(
        self, message: str, existing_memories: Sequence[str] = ()
    ) -> List[ExtractedMemory]:
        memories = extract_by_patterns(message)
        if memories:
            return memories
        if might_contain_memory(message):
            return await self.extract_memories([message], existing_memories=existing_memories)
        return []
