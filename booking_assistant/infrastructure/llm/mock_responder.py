from __future__ import annotations

from booking_assistant.application.ports.chat_responder import ChatResponderPort
from booking_assistant.application.utils.message_rules import is_booking_request, normalize_text


class MockChatResponder(ChatResponderPort):
    """Canned keyword replies; used in dev and whenever no LLM key is configured."""

    def __init__(self, business_name: str = "Metalogics", contact_email: str = "hello@metalogics.io") -> None:
        self._business_name = business_name
        self._contact_email = contact_email
        self._topics: tuple[tuple[tuple[str, ...], str], ...] = (
            (
                ("web development", "website"),
                "We offer custom web development, building responsive, modern websites tailored to your business.",
            ),
            (
                ("mobile app", "app development", "iphone", "android"),
                "We develop user-friendly mobile applications for both iOS and Android. Tell us about your app idea!",
            ),
            (
                ("seo", "marketing"),
                "Our SEO and digital marketing services help boost your visibility and organic reach.",
            ),
            (
                ("blockchain", "web3"),
                "We build Web3 and blockchain solutions, including decentralised applications and smart contracts.",
            ),
            (
                ("price", "pricing", "cost"),
                "Pricing depends on the scope of your project. Book a free consultation and we'll prepare a quote.",
            ),
            (
                ("contact", "email", "phone"),
                f"You can reach us at {contact_email}. We typically respond within 24-48 hours.",
            ),
        )

    def respond(self, message: str, session_id: str) -> str:
        if is_booking_request(message):
            return (
                "I'd love to help you get started! Say \"I'd like to book a meeting\" and I'll collect "
                "your name, email, company and a short description of your project."
            )

        text = normalize_text(message)
        for keywords, reply in self._topics:
            if any(k in text for k in keywords):
                return reply

        return (
            f"I'm here to help you learn about {self._business_name} services. We offer web development, "
            "mobile apps, Web3 solutions and digital marketing. How can I assist you today?"
        )
