"""
Integration tests that make real provider calls.

These tests are slow and cost money - run selectively:
    pytest tests/integration/ -v

Requires API keys in .env:
    - GOOGLE_API_KEY (for illustrations, and Gemini text)
    - ANTHROPIC_API_KEY or OPENAI_API_KEY (alternative text providers)
"""
