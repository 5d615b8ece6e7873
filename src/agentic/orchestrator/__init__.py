"""In-process task orchestration core.

An ordered registry maps a task category to the first provider that supports
it. The scheduler runs queued tasks on a fixed pool of threads; the workflow
orchestrator runs multi-step workflows inline on the caller's thread. State
lives in memory only and nothing is retried automatically.
"""
