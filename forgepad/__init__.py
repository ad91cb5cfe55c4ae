"""
ForgePad Runtime: Provider Fallback Orchestration

Routes a conversation to one of several interchangeable AI providers
(Gemini, OpenAI, Anthropic), enforcing a per-attempt timeout, classifying
failures and falling back to the next configured provider while reporting
every health and switch transition to observers.
"""

__version__ = "0.1.0"
