# Magazine AI: Section Content Engine
"""
AI-assisted content generation for magazine sections:
- section_config: block schemas, prompt templates, model catalogue
- content_generator: per-section prompt building, model calls, response parsing
- batch: concurrency-bounded batch runs with progress tracking and retry
"""
