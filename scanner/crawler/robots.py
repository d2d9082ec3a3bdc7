"""Robots.txt parser and AI crawler access check."""

import re
from dataclasses import dataclass, field
from urllib.parse import urljoin, urlparse

import httpx
import structlog

logger = structlog.get_logger(__name__)

# AI crawlers whose access to the site root is reported
AI_BOTS = (
    "GPTBot",
    "Google-Extended",
    "CCBot",
    "anthropic-ai",
    "PerplexityBot",
    "Bytespider",
)


@dataclass
class RobotsRule:
    """A single Allow/Disallow rule."""

    path: str
    allowed: bool

    def __post_init__(self) -> None:
        anchored = self.path.endswith("$")
        body = self.path[:-1] if anchored else self.path
        pattern = ".*".join(re.escape(part) for part in body.split("*"))
        self._regex = re.compile(pattern + ("$" if anchored else ""))

    @property
    def specificity(self) -> int:
        return len(self.path)

    def matches(self, url_path: str) -> bool:
        """Check if this rule matches a URL path."""
        return bool(self._regex.match(url_path))


@dataclass
class RobotsGroup:
    """Rules that apply to one or more user agents."""

    agents: list[str] = field(default_factory=list)
    rules: list[RobotsRule] = field(default_factory=list)


@dataclass
class RobotsParser:
    """Parser for robots.txt files."""

    groups: list[RobotsGroup] = field(default_factory=list)
    sitemaps: list[str] = field(default_factory=list)

    @classmethod
    def parse(cls, content: str) -> "RobotsParser":
        """
        Parse robots.txt content into user-agent groups.

        Consecutive User-agent lines share one group; a User-agent line
        after any rule starts a new group.

        Args:
            content: The robots.txt file content

        Returns:
            RobotsParser instance with parsed groups
        """
        parser = cls()
        current: RobotsGroup | None = None
        seen_rule = False

        for line in content.splitlines():
            # Strip inline comments
            line = line.split("#", 1)[0].strip()
            if not line or ":" not in line:
                continue

            directive, _, value = line.partition(":")
            directive = directive.strip().lower()
            value = value.strip()

            if directive == "user-agent":
                if current is None or seen_rule:
                    current = RobotsGroup()
                    parser.groups.append(current)
                    seen_rule = False
                if value:
                    current.agents.append(value.lower())

            elif directive in ("allow", "disallow"):
                if current is None:
                    continue
                seen_rule = True
                # Empty Disallow means allow all
                if value:
                    current.rules.append(RobotsRule(path=value, allowed=directive == "allow"))

            elif directive == "sitemap" and value.lower().startswith("http"):
                parser.sitemaps.append(value)

        return parser

    def rules_for(self, user_agent: str) -> list[RobotsRule]:
        """Collect rules for an agent, preferring its own groups over '*'."""
        agent = user_agent.lower()
        specific = [g for g in self.groups if agent != "*" and agent in g.agents]
        groups = specific or [g for g in self.groups if "*" in g.agents]
        return [rule for group in groups for rule in group.rules]

    def is_allowed(self, url: str, user_agent: str = "*") -> bool:
        """
        Check if a URL may be crawled by the given agent.

        The longest matching rule wins; an Allow wins a tie.

        Args:
            url: Absolute URL or path to check
            user_agent: Crawler product token

        Returns:
            True if allowed, False if disallowed
        """
        parsed = urlparse(url)
        path = parsed.path or "/"
        if parsed.query:
            path = f"{path}?{parsed.query}"

        best: RobotsRule | None = None
        for rule in self.rules_for(user_agent):
            if not rule.matches(path):
                continue
            if (
                best is None
                or rule.specificity > best.specificity
                or (rule.specificity == best.specificity and rule.allowed)
            ):
                best = rule

        return True if best is None else best.allowed


@dataclass(frozen=True)
class RobotsResult:
    """What robots.txt says about the site root."""

    exists: bool
    allows_crawlers: bool = True
    allows_ai_bots: dict[str, bool] = field(
        default_factory=lambda: dict.fromkeys(AI_BOTS, True)
    )
    sitemap_urls: tuple[str, ...] = ()
    raw: str | None = None
    error: str | None = None

    @property
    def blocked_ai_bots(self) -> list[str]:
        return [bot for bot, allowed in self.allows_ai_bots.items() if not allowed]

    @classmethod
    def from_content(cls, content: str, base_url: str) -> "RobotsResult":
        parser = RobotsParser.parse(content)
        root = urljoin(base_url, "/")
        return cls(
            exists=True,
            allows_crawlers=parser.is_allowed(root, "*"),
            allows_ai_bots={bot: parser.is_allowed(root, bot) for bot in AI_BOTS},
            sitemap_urls=tuple(parser.sitemaps),
            raw=content,
        )

    def to_dict(self) -> dict:
        return {
            "exists": self.exists,
            "allows_crawlers": self.allows_crawlers,
            "allows_ai_bots": dict(self.allows_ai_bots),
            "sitemap_urls": list(self.sitemap_urls),
            "error": self.error,
        }


async def fetch_robots(
    base_url: str,
    *,
    user_agent: str,
    timeout: float = 5.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> RobotsResult:
    """
    Fetch and evaluate /robots.txt for a site.

    A missing file or any failure means everything is allowed.
    """
    robots_url = urljoin(base_url, "/robots.txt")

    try:
        async with httpx.AsyncClient(
            timeout=timeout, follow_redirects=True, transport=transport
        ) as client:
            response = await client.get(robots_url, headers={"User-Agent": user_agent})
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.warning("robots_fetch_failed", url=robots_url, error=str(e) or type(e).__name__)
        return RobotsResult(exists=False, error=str(e) or type(e).__name__)

    if response.status_code != 200:
        return RobotsResult(exists=False)

    return RobotsResult.from_content(response.text, base_url)
