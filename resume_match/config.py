"""
Configuration for the resume / job-description matching engine.
Adjust tuning constants here.
"""

from sklearn.feature_extraction.text import ENGLISH_STOP_WORDS

# Words in scikit-learn's stop list that carry meaning in resumes
KEEP_WORDS = frozenset({
    "computer",
    "system",
    "detail",
    "interest",
})

DEFAULT_STOP_WORDS = frozenset(ENGLISH_STOP_WORDS - KEEP_WORDS)

# Minimum token length kept by the normalizer
MIN_KEYWORD_LENGTH = 2

# Number of sentence pairs returned by the ranker
TOP_N_MATCHES = 5

# Keyword alias mappings (applied to both job and resume tokens)
KEYWORD_ALIASES = {
    "reactjs": "react",
    "nodejs": "node",
    "vuejs": "vue",
    "postgres": "postgresql",
    "psql": "postgresql",
    "k8s": "kubernetes",
    "js": "javascript",
    "ts": "typescript",
    "py": "python",
    "python3": "python",
    "tf": "tensorflow",
    "sklearn": "scikit",
}

# Characters stripped from the start of a sentence (resume bullets)
BULLET_MARKERS = "-*•·–—>"

# LLM configuration for AI enrichment
LLM_CONFIG = {
    "temperature": 0,  # For maximum consistency
    "model": "gpt-4o-mini",  # Default model
}

# Embedding configuration for the network similarity provider
EMBEDDING_CONFIG = {
    "model": "text-embedding-3-small",
    "batch_size": 64,
}

# Timeouts for external calls (seconds)
TIMEOUTS = {
    "similarity": 10.0,
    "enrichment": 30.0,
}

# Largest resume upload accepted by the HTTP layer (5 MiB)
MAX_UPLOAD_BYTES = 5 * 1024 * 1024
