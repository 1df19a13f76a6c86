"""Core orchestration package.

Architectural role:
    Sits between the API/CLI adapters and the retrieval and LLM layers.

Composition:
    - `engine`: acquire -> filter -> summarize control flow.
    - `usefulness`: rule-based gate over acquired content.
    - `summary_types`: result data contracts.
"""
