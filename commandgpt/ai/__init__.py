# commandgpt/ai/__init__.py
"""
LLM integration for CommandGPT: prompt building, response parsing and the
Gemini client.
"""
from .parser import CommandResponse, extract_json, parse_command_response
from .prompts import build_prompt

__all__ = [
    'CommandResponse',
    'extract_json',
    'parse_command_response',
    'build_prompt',
]
