"""LLM access package.

Module split:
    - `provider_config`: environment-driven provider and model configuration.
    - `client`: OpenAI-compatible transport with structured (function-call) output.
    - `service`: summarization entrypoints and token-budget trimming.
"""
