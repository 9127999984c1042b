"""Well-known model identifiers used by callers of the router."""
from enum import Enum


class AIModels(str, Enum):
    """Fully-qualified model identifiers, prefixed with their provider path."""

    # --- Together AI (served by this router) ---
    TOGETHER_DEEPSEEK_V3 = "together/deepseek-ai/DeepSeek-V3"
    TOGETHER_QWEN_2_5_CODER = "together/Qwen/Qwen2.5-Coder-32B-Instruct"
    TOGETHER_LLAMA_3_3_70B = "together/meta-llama/Llama-3.3-70B-Instruct-Turbo"

    # --- Google AI Studio ---
    GEMINI_2_5_PRO = "google-ai-studio/gemini-2.5-pro"
    GEMINI_2_5_FLASH = "google-ai-studio/gemini-2.5-flash"
    GEMINI_2_5_FLASH_LITE = "google-ai-studio/gemini-2.5-flash-lite"

    # --- Anthropic ---
    CLAUDE_4_SONNET = "anthropic/claude-sonnet-4-20250514"
    CLAUDE_4_OPUS = "anthropic/claude-opus-4-20250514"

    # --- OpenAI ---
    OPENAI_5 = "openai/gpt-5"
    OPENAI_5_MINI = "openai/gpt-5-mini"
    OPENAI_O3 = "openai/o3"

    DISABLED = "disabled"
