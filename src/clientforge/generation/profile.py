from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class GenerationProfile:
    use_future_annotations: bool
    use_pep604: bool
    use_typing_extensions: bool
    use_typing_override: bool

    @classmethod
    def from_version(cls, target_version: str | tuple[int, int]) -> "GenerationProfile":
        if isinstance(target_version, str):
            parts = target_version.split(".")
            major = int(parts[0])
            minor = int(parts[1]) if len(parts) > 1 else 0
        else:
            major, minor = target_version
        if (major, minor) <= (3, 9):
            return cls(
                use_future_annotations=True,
                use_pep604=False,
                use_typing_extensions=True,
                use_typing_override=False,
            )
        if (major, minor) == (3, 10):
            return cls(
                use_future_annotations=True,
                use_pep604=True,
                use_typing_extensions=True,
                use_typing_override=False,
            )
        if (major, minor) == (3, 11):
            return cls(
                use_future_annotations=True,
                use_pep604=True,
                use_typing_extensions=False,
                use_typing_override=False,
            )
        return cls(
            use_future_annotations=True,
            use_pep604=True,
            use_typing_extensions=False,
            use_typing_override=True,
        )
