"""
Core building blocks: item models, tokenizer, vector model and the
external collaborators (git status, summarizer, event log).
"""
