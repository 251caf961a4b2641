# campusvote/manifesto/generator.py
"""AI-assisted manifesto drafting for candidate nominations.

The election core never talks to a text-generation provider directly. A
``ManifestoGenerator`` turns (name, position, key points) into prose and a
``ManifestoDrafter`` sits in front of it:

- empty key points are rejected before any call goes out
- only one draft per voter may be in flight at a time
- any provider failure becomes the fixed fallback text

Usage:
    drafter = ManifestoDrafter(GeminiManifestoGenerator(api_key='...'))
    text = await drafter.draft(voter, Position.PRESIDENT, 'Better wifi, clean campus')
"""

import asyncio
import logging
import threading

import google.generativeai as genai

from campusvote.election.errors import ExternalServiceError, GenerationInProgressError, ValidationError
from campusvote.election.models import Position

logger = logging.getLogger(__name__)

DEFAULT_MODEL = 'gemini-2.5-flash'
FALLBACK_MANIFESTO = "Committed to excellence and student welfare. (AI Generation Failed)"
EMPTY_RESPONSE_MANIFESTO = "Vote for me for a better campus!"

PROMPT_TEMPLATE = """
You are an expert Political Campaign Manager for university student elections.

Candidate Name: {name}
Running For: {position}
Key Points/Promises: {key_points}

Task: Write a short, inspiring, and professional election manifesto (max 100 words).
It should be persuasive and appeal to university students.
Use formatting (bullet points) if necessary.
Do not use markdown blocks or preamble. Just the manifesto text.
"""


def build_prompt(name, position, key_points):
    return PROMPT_TEMPLATE.format(name=name, position=position, key_points=key_points)


class ManifestoGenerator:
    async def generate(self, name: str, position: str, key_points: str) -> str:
        """Return manifesto text or raise ExternalServiceError."""
        raise NotImplementedError


class GeminiManifestoGenerator(ManifestoGenerator):
    def __init__(self, api_key=None, model_name=DEFAULT_MODEL):
        self.api_key = api_key
        self.model_name = model_name
        self._model = None

    def _get_model(self):
        if self._model is None:
            if not self.api_key:
                raise ExternalServiceError("GEMINI_API_KEY is not configured")
            genai.configure(api_key=self.api_key)
            self._model = genai.GenerativeModel(model_name=self.model_name)
        return self._model

    async def generate(self, name, position, key_points):
        model = self._get_model()
        try:
            # the async client stays bound to the first event loop it ran on
            response = await asyncio.to_thread(
                model.generate_content, build_prompt(name, position, key_points))
            text = response.text
        except Exception as e:
            raise ExternalServiceError(f"Gemini request failed: {e}")
        return (text or '').strip() or EMPTY_RESPONSE_MANIFESTO


class ManifestoDrafter:
    def __init__(self, generator: ManifestoGenerator):
        self.generator = generator
        self._pending = set()
        self._lock = threading.Lock()

    def is_pending(self, roll_number) -> bool:
        with self._lock:
            return roll_number in self._pending

    async def draft(self, voter, position, key_points) -> str:
        position = Position.parse(position)
        key_points = (key_points or '').strip()
        if not key_points:
            raise ValidationError("Please enter some key points first.")

        with self._lock:
            if voter.roll_number in self._pending:
                raise GenerationInProgressError()
            self._pending.add(voter.roll_number)

        try:
            return await self.generator.generate(voter.name, position.value, key_points)
        except Exception as e:
            logger.warning(f"Manifesto generation failed for {voter.roll_number}: {e}")
            return FALLBACK_MANIFESTO
        finally:
            with self._lock:
                self._pending.discard(voter.roll_number)
