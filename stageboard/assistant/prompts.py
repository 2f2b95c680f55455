"""System prompts and user prompt construction for the intake and build assistants."""
from typing import Any, Optional

DEFAULT_TECH = "Next.js, Tailwind CSS"
DEFAULT_PRIMARY_COLOR = "#4f46e5"

_INTAKE_PROMPT = (
    "You are the intake assistant for {product}, an AI-powered site builder. "
    "Your job is to understand what the customer wants built.\n\n"
    "Listen to their description. If clear enough, summarize what you'd build. "
    "If vague, ask ONE clarifying question.\n\n"
    "ALWAYS respond with valid JSON only, with no markdown, no code fences and no extra text:\n"
    '{{"message":"Your response","points":null}}\n\n'
    "Rules:\n"
    '- "message": Your conversational response. Under 2 sentences. Direct, warm, not salesy.\n'
    '- "points": null until you have at least 3 clear requirements from the customer. '
    "Then an array of concise strings (3-8 words each). Max 8 points.\n"
    "- Each point should be a distinct feature or capability the customer needs.\n"
    "- When you populate points, your message should introduce them naturally, "
    "like \"Here's what I'd build for you:\"\n"
    "- If the customer's input is too vague (e.g., \"I need a website\"), ask what their "
    "business does and what specific problems they want solved.\n"
    "- Never suggest points that the customer didn't mention or imply. "
    "Only extract what they actually said."
)

_BUILD_PROMPT = (
    "You generate realistic build step sequences for {product}, an AI site builder. "
    "Given a project spec, produce a sequence of build steps that represent what actually "
    "happens when building this site.\n\n"
    "RESPOND WITH VALID JSON ONLY:\n"
    '{{"steps":[{{"id":"step-1","label":"Short label (3-5 words)",'
    '"detail":"One sentence describing what\'s being generated","duration":2000}}]}}\n\n'
    "Rules:\n"
    "- Generate 8-14 steps that feel like a real build process\n"
    "- Start with scaffolding/setup steps, then core features, then styling/polish\n"
    "- Duration is in milliseconds (1500-4000ms per step, faster for simple steps)\n"
    "- Labels should be concise action phrases: \"Scaffolding project\", "
    "\"Building product catalog\", \"Connecting Stripe\", etc.\n"
    "- Details should describe the specific thing being generated\n"
    "- Order matters: dependencies should come first (DB schema before CRUD, layout before components)\n"
    "- Include at least one step for: project setup, database, core feature, styling/brand, "
    "and deployment prep\n"
    "- The last step should always be deployment-related\n"
    "- Total duration across all steps should be 25-40 seconds"
)


def intake_system_prompt(product_name: str = "Viberr") -> str:
    return _INTAKE_PROMPT.format(product=product_name)


def build_system_prompt(product_name: str = "Viberr") -> str:
    return _BUILD_PROMPT.format(product=product_name)


def _field(value: Any, name: str) -> Any:
    return value.get(name) if isinstance(value, dict) else None


def build_user_prompt(spec: Any, brand: Any, features: Optional[list] = None, total: Any = None) -> str:
    """
    Describe the project for the build assistant.

    ``spec`` and ``brand`` are the loosely-typed objects posted by the
    client; missing parts fall back to sensible placeholders.
    """
    sections = _field(spec, "sections") or []
    section_names = [_field(s, "title") or "" for s in sections if isinstance(s, dict)]
    tech = _field(spec, "tech")
    tech_list = ", ".join(str(t) for t in tech) if tech else DEFAULT_TECH

    brand_name = _field(brand, "name") if isinstance(brand, dict) else brand
    colors = _field(brand, "colors")
    primary = _field(colors, "primary") or DEFAULT_PRIMARY_COLOR

    lines = [
        "Generate build steps for:",
        f"Sections: {', '.join(section_names)}",
        f"Tech: {tech_list}",
        f"Brand: {brand_name} ({primary})",
        f"Domain: {_field(brand, 'domain') or 'TBD'}",
        f"Budget: ${total or 0}",
        f"Summary: {_field(spec, 'summary') or 'Web application'}",
    ]
    if features:
        names = [_field(f, "name") or str(f) if isinstance(f, dict) else str(f) for f in features]
        lines.append(f"Features: {', '.join(names)}")
    return "\n".join(lines)
