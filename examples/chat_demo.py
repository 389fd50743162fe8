"""Minimal demonstration of a multi-turn chat through the relay."""

import asyncio

from ai_services.api.service import get_service


async def main() -> None:
    service = get_service(
        {
            "slug": "google",
            "name": "Google (Gemini)",
            "capabilities": ["text-generation"],
            "available_models": ["gemini-1.5-flash"],
        }
    )
    session = service.start_chat(model="gemini-1.5-flash")
    for question in ("Hello!", "用一句话介绍一下你自己。"):
        reply = await session.send_message(question)
        print("User:", question)
        print("Model:", reply.text)


if __name__ == "__main__":
    asyncio.run(main())
