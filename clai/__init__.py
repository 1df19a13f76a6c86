"""clai: answer a URL or free-text query from acquired web content.

Package layout:
    - `retrieval.web`: content acquisition pipeline (classification, provider
      fallback, concurrent fetch, HTML extraction).
    - `core`: analysis engine, usefulness filter, summary data contracts.
    - `llm`: provider configuration, chat-completion client, summarization.
    - `prompting`: prompt and response-schema assembly.
    - `api`: CLI and HTTP adapters.
"""
