"""Text cleanup and skill tabulation utilities."""

import re
from collections import Counter
from collections.abc import Iterable

# Tech skills recognised by the skill report
TECH_SKILLS = {
    # Languages
    "python", "java", "javascript", "typescript", "c++", "c#", "go", "golang",
    "rust", "ruby", "php", "swift", "kotlin", "scala", "r", "matlab", "perl",
    "sql", "html", "css", "bash", "shell", "sas", "julia",
    # Frameworks & Libraries
    "react", "angular", "vue", "node.js", "django", "flask", "fastapi", "spring",
    # Cloud & Infra
    "aws", "azure", "gcp", "google cloud", "docker", "kubernetes",
    "terraform", "linux", "ci/cd",
    # Data & ML
    "machine learning", "deep learning", "nlp", "computer vision",
    "tensorflow", "pytorch", "keras", "scikit-learn", "pandas", "numpy", "spark",
    "hadoop", "hive", "airflow", "kafka", "tableau", "power bi", "excel",
    "statistics", "data visualization",
    # Databases
    "postgresql", "mysql", "mongodb", "redis", "cassandra", "nosql",
    "dynamodb", "snowflake", "oracle",
    # Practices
    "git", "agile", "rest", "graphql", "microservices", "a/b testing",
}

_WHITESPACE_RE = re.compile(r"\s+")
_BLANK_LINES_RE = re.compile(r"\n\s*\n+")


def normalize_text(text: str | None) -> str:
    """Collapse newlines and whitespace runs into single spaces and strip."""
    if not text:
        return ""
    return _WHITESPACE_RE.sub(" ", text).strip()


def normalize_paragraphs(text: str | None) -> str:
    """Like normalize_text but keeps one newline between non-empty lines."""
    if not text:
        return ""
    lines = (normalize_text(line) for line in _BLANK_LINES_RE.sub("\n", text).splitlines())
    return "\n".join(line for line in lines if line)


def extract_skills(text: str) -> set[str]:
    """Extract recognized tech skills from text."""
    text_lower = text.lower()
    found = set()

    for skill in TECH_SKILLS:
        # Short skills and ones ending in symbols need explicit boundaries
        if len(skill) <= 3 or not skill[-1].isalnum():
            if re.search(rf"(?<![\w+#]){re.escape(skill)}(?![\w+#])", text_lower):
                found.add(skill)
        elif re.search(rf"\b{re.escape(skill)}\b", text_lower):
            found.add(skill)

    return found


def skill_frequencies(texts: Iterable[str]) -> Counter:
    """Count in how many texts each skill appears (once per text)."""
    counts: Counter = Counter()
    for text in texts:
        if text:
            counts.update(extract_skills(text))
    return counts
