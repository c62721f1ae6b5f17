"""Topic-domain vocabulary used by the classifier."""

from dataclasses import dataclass, field

DEFAULT_DOMAINS = {
    "vibe-coding": (
        "Software development, AI coding tools, developer productivity, "
        "programming techniques"
    ),
    "ai-filmmaking": (
        "Video generation, AI video, filmmaking with AI, cinematography, "
        "visual effects"
    ),
}


@dataclass(frozen=True)
class DomainVocabulary:
    """Fixed set of domain names plus a required catch-all."""

    domains: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_DOMAINS))
    default: str = "other"

    def __post_init__(self) -> None:
        if not self.default or not self.default.strip():
            raise ValueError("Domain vocabulary needs a default domain")

    @property
    def names(self) -> list[str]:
        return [*self.domains.keys(), self.default]

    def coerce(self, value: object) -> str:
        """Return value if it is a known domain, else the default."""
        if isinstance(value, str) and value in self.names:
            return value
        return self.default

    def prompt_list(self) -> str:
        lines = [f'"{name}" - {description}' for name, description in self.domains.items()]
        lines.append(f'"{self.default}" - Content that doesn\'t fit other categories')
        return "\n  ".join(lines)
