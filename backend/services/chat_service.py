"""
Chat service: drought decision-support assistant backed by Gemini.
"""

import json
import logging
import os
from typing import Dict, Any

import google.generativeai as genai
from google.generativeai.types import GenerationConfig

logger = logging.getLogger(__name__)

NOT_CONFIGURED_REPLY = "Gemini API key is not configured. Please add it to your environment variables."
ERROR_REPLY = "I encountered an error while processing your request. Please try again."

SYSTEM_INSTRUCTION_TEMPLATE = """
You are the JalSetu AI Assistant, a specialized GovTech decision support system for drought management in India.
You have access to real-time data about villages, water stress indices (WSI), rainfall deviation, and tanker fleet status.

Current Context:
{context}

Guidelines:
1. Be professional, data-driven, and helpful to government officials.
2. Use terms like "Block", "District", "Gram Panchayat" appropriately.
3. Provide actionable recommendations (e.g., "Deploy 2 tankers to Village X due to 90% WSI").
4. If asked about predictions, explain the reasoning (e.g., "Based on groundwater depletion velocity of -2.1m/year").
5. Keep responses concise and formatted with markdown.
"""


class ChatService:
    """Service for answering dashboard questions with a generative model."""

    def __init__(self, api_key: str = None, model_name: str = None, temperature: float = 0.7):
        self.api_key = api_key if api_key is not None else os.getenv("GEMINI_API_KEY")
        self.model_name = model_name or os.getenv("GEMINI_MODEL", "gemini-1.5-flash")
        self.temperature = temperature
        self.is_configured = False

        if self.api_key:
            genai.configure(api_key=self.api_key)
            self.is_configured = True
        else:
            logger.info("GEMINI_API_KEY not set, chat assistant is disabled")

    def build_system_instruction(self, context: Dict[str, Any]) -> str:
        return SYSTEM_INSTRUCTION_TEMPLATE.format(context=json.dumps(context, default=str))

    def get_chat_response(self, message: str, context: Dict[str, Any]) -> str:
        """Answer a single user message given a snapshot of dashboard data."""
        if not self.is_configured:
            return NOT_CONFIGURED_REPLY

        try:
            model = genai.GenerativeModel(
                self.model_name,
                system_instruction=self.build_system_instruction(context),
            )
            response = model.generate_content(
                message,
                generation_config=GenerationConfig(temperature=self.temperature),
            )
            return response.text
        except Exception as e:
            # Blocked replies raise ValueError from response.text
            logger.error(f"Gemini error for model {self.model_name}: {e}")
            return ERROR_REPLY
