import os
from dataclasses import dataclass, field

MIB = 1024 * 1024

DEFAULT_MAX_TOTAL_SIZE = 200 * MIB
DEFAULT_ACCEPTED_TYPES = ("application/pdf",)
DEFAULT_ACCEPTED_EXTENSIONS = (".pdf",)
DEFAULT_MERGE_TIMEOUT = 60.0
DEFAULT_OUTPUT_NAME = "merged-document.pdf"


def _split(value):
    return tuple(part.strip().lower() for part in value.split(",") if part.strip())


@dataclass(frozen=True)
class CombinerConfig:
    """Adjustable limits for intake and merge.

    ``max_total_size`` is the aggregate cap in bytes across the accepted set.
    ``merge_timeout`` bounds every delegated load/serialize call, in seconds.
    """

    max_total_size: int = DEFAULT_MAX_TOTAL_SIZE
    accepted_types: tuple = field(default=DEFAULT_ACCEPTED_TYPES)
    accepted_extensions: tuple = field(default=DEFAULT_ACCEPTED_EXTENSIONS)
    merge_timeout: float = DEFAULT_MERGE_TIMEOUT
    output_name: str = DEFAULT_OUTPUT_NAME

    def __post_init__(self):
        if self.max_total_size <= 0:
            raise ValueError("max_total_size must be positive")
        if self.merge_timeout <= 0:
            raise ValueError("merge_timeout must be positive")
        if not self.accepted_types:
            raise ValueError("accepted_types must not be empty")

    @classmethod
    def from_env(cls, environ=None):
        env = os.environ if environ is None else environ

        max_mb = float(env.get("PDF_COMBINER_MAX_TOTAL_MB", DEFAULT_MAX_TOTAL_SIZE / MIB))
        types = _split(env.get("PDF_COMBINER_ACCEPTED_TYPES", ",".join(DEFAULT_ACCEPTED_TYPES)))
        extensions = _split(
            env.get("PDF_COMBINER_ACCEPTED_EXTENSIONS", ",".join(DEFAULT_ACCEPTED_EXTENSIONS))
        )
        timeout = float(env.get("PDF_COMBINER_MERGE_TIMEOUT", DEFAULT_MERGE_TIMEOUT))
        output_name = env.get("PDF_COMBINER_OUTPUT_NAME", DEFAULT_OUTPUT_NAME)

        return cls(
            max_total_size=int(max_mb * MIB),
            accepted_types=types,
            accepted_extensions=extensions,
            merge_timeout=timeout,
            output_name=output_name,
        )
