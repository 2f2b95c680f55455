"""
Unit tests for assistant prompt construction.
"""
from stageboard.assistant.prompts import build_system_prompt, build_user_prompt, intake_system_prompt


class TestSystemPrompts:
    """Test the system prompts."""

    def test_intake_prompt_names_product(self):
        prompt = intake_system_prompt("Acme")

        assert "intake assistant for Acme" in prompt
        assert '{"message":"Your response","points":null}' in prompt

    def test_build_prompt_shows_step_format(self):
        prompt = build_system_prompt()

        assert "Viberr" in prompt
        assert '{"steps":[{"id":"step-1"' in prompt
        assert "deployment-related" in prompt


class TestBuildUserPrompt:
    """Test the project description sent to the build assistant."""

    def test_full_project(self):
        spec = {
            "sections": [{"title": "Hero"}, {"title": "Pricing"}],
            "tech": ["Next.js", "Stripe"],
            "summary": "Booking site for a yoga studio",
        }
        brand = {"name": "Lotus", "colors": {"primary": "#ff0000"}, "domain": "lotus.yoga"}

        prompt = build_user_prompt(spec, brand, [{"name": "Bookings"}, "Newsletter"], 1200)

        assert prompt.splitlines() == [
            "Generate build steps for:",
            "Sections: Hero, Pricing",
            "Tech: Next.js, Stripe",
            "Brand: Lotus (#ff0000)",
            "Domain: lotus.yoga",
            "Budget: $1200",
            "Summary: Booking site for a yoga studio",
            "Features: Bookings, Newsletter",
        ]

    def test_defaults_for_missing_parts(self):
        prompt = build_user_prompt({"summary": ""}, {"name": "Lotus"})

        assert "Sections: " in prompt
        assert "Tech: Next.js, Tailwind CSS" in prompt
        assert "Brand: Lotus (#4f46e5)" in prompt
        assert "Domain: TBD" in prompt
        assert "Budget: $0" in prompt
        assert "Summary: Web application" in prompt
        assert "Features" not in prompt

    def test_brand_given_as_plain_name(self):
        assert "Brand: Lotus (#4f46e5)" in build_user_prompt({}, "Lotus")
