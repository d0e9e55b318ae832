# Services package init
"""
Notewise Backend — Services Layer
===================================

Service Inventory (leaves first):
    - tokens:            token estimation, budget check, truncation, cost
    - error_classifier:  raw provider error → GenerationErrorKind + message
    - retry:             RetryExecutor (tenacity, exponential backoff)
    - usage:             UsageRecorder (bounded in-memory call log)
    - llm_base:          LLMService contract, GenerationOptions
    - gemini_service:    GeminiService, the Google Gemini client
    - ai_queries:        summary/tag persistence, ownership-scoped note lookup
    - orchestrator:      validate → generate → persist skeleton
    - summary_service:   SummaryService
    - tag_service:       TagService, parse_tags()
    - diagnostics:       health_check_full()
    - background:        GenerationQueue (fire-and-forget generation)
    - note_service:      note CRUD and trash

Routes call services; services never import routes.
"""
