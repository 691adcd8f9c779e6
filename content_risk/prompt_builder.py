"""Prompt construction for archive content-risk classification."""

from typing import Iterable, List

from content_risk.schema import ArchiveTextFile, RiskPrompt

SYSTEM_INSTRUCTIONS = """\
You are a security reviewer for HTML display advertising creatives. You
receive the text files of one creative archive (HTML, JavaScript, CSS and
related files) and decide whether it carries a security risk.

Treat as risky:
- obfuscated JavaScript hiding its behaviour;
- eval() or new Function() applied to dynamic or remote data;
- scripts loaded from unusual domains (Google, Cloudflare, jsDelivr,
  unpkg and the ad-network CDNs are normal);
- crypto-mining code;
- heavy browser fingerprinting or access to sensitive browser APIs;
- hidden forms, forced redirects or clickjacking.

Answer with one JSON object and nothing else:
{"is_malicious": <true|false>, "reason": <string or null>}
When is_malicious is true, reason is one short, non-technical sentence
about the most significant risk.
"""

TRUNCATION_MARKER = "\n/* truncated */"


class RiskPromptBuilder:
    """Lists archive files in name order under a per-file and a total cap.

    Files beyond ``max_total_chars`` are left out and counted at the end of
    the listing so the model knows the view is partial.
    """

    def __init__(self, max_chars_per_file: int = 20000, max_total_chars: int = 120000) -> None:
        self._max_chars_per_file = max_chars_per_file
        self._max_total_chars = max_total_chars

    def build(self, files: Iterable[ArchiveTextFile]) -> RiskPrompt:
        sections: List[str] = []
        used = 0
        omitted = 0
        for item in sorted(files, key=lambda f: f.name):
            content = item.content
            if len(content) > self._max_chars_per_file:
                content = content[: self._max_chars_per_file] + TRUNCATION_MARKER
            section = f"=== {item.name} ===\n{content}\n"
            if sections and used + len(section) > self._max_total_chars:
                omitted += 1
                continue
            sections.append(section)
            used += len(section)

        listing = "".join(sections)
        if omitted:
            listing += f"=== {omitted} more file(s) omitted for length ===\n"
        return RiskPrompt(system=SYSTEM_INSTRUCTIONS, user=listing)
