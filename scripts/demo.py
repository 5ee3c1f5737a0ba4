#!/usr/bin/env python3
"""
Demo script for the chat gateway.

Asks the upstream provider a few civic questions, then repeats them with
different spacing and casing to show the reply cache at work.
Requires COHERE_API_KEY in the environment or a .env file.
"""

import asyncio
import time

from chat_gateway import ChatGatewayError, ChatService, CohereChatProvider, MemoryReplyCache, configure_logging


def print_section(title: str) -> None:
    """Print a section header."""
    print("\n" + "=" * 70)
    print(f"  {title}")
    print("=" * 70)


async def ask(service: ChatService, message: str) -> None:
    start_time = time.time()
    try:
        result = await service.handle_chat_request(message)
    except ChatGatewayError as e:
        print(f"  {message!r} -> {e.kind}: {e.to_payload()}")
        return
    elapsed_ms = (time.time() - start_time) * 1000
    source = "cache" if result.cached else f"upstream, {result.attempts} attempt(s)"
    print(f"  {message!r} -> ({source}, {elapsed_ms:.1f} ms)")
    print(f"    {result.reply[:200]}")


async def main() -> None:
    configure_logging("WARNING")
    provider = CohereChatProvider.create()
    service = ChatService.create(provider=provider, cache=MemoryReplyCache.create())

    questions = [
        "How do I report a broken streetlight?",
        "Who is responsible for fixing potholes?",
    ]

    print_section("Cold cache")
    for question in questions:
        await ask(service, question)

    print_section("Same questions, different spacing and casing")
    for question in questions:
        await ask(service, f"   {question.upper()}  ")

    print_section("Stats")
    print(f"  {service.get_stats()}")

    await provider.close()


if __name__ == "__main__":
    asyncio.run(main())
