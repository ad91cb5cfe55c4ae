#!/usr/bin/env python3
"""
Chat CLI

Sends one prompt through the ForgePad fallback orchestrator and prints the
answer together with every provider switch and health event observed.

This script:
1. Opens the provider store (in memory, or --store for a JSON file)
2. Optionally saves keys passed on the command line
3. Sends the prompt with the requested provider/fallback/timeout options
4. Streams tokens to stdout and reports runtime events

Usage:
    python scripts/chat_cli.py "Explain asyncio.wait_for"
    python scripts/chat_cli.py "Hi" --provider openai --openai-key sk-...
    python scripts/chat_cli.py "Hi" --no-fallback --timeout-ms 5000
    python scripts/chat_cli.py "Hi" --store ~/.forgepad/store.json --verbose
    python scripts/chat_cli.py --validate openai --openai-key sk-...
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from forgepad.config import configure_logging, get_settings
from forgepad.core.errors import ClassifiedError
from forgepad.core.types import (
    Message,
    ProviderHealthEvent,
    ProviderSwitchEvent,
    RuntimeEvent,
    SendOptions,
    ToolInvocationEvent,
)
from forgepad.dispatcher.orchestrator import FallbackOrchestrator
from forgepad.registry.providers import ProviderKind
from forgepad.storage.store import ProviderStore


def format_event(event: RuntimeEvent) -> str:
    """Render a runtime event as one status line."""
    if isinstance(event, ProviderSwitchEvent):
        return f"[switch] {event.from_provider.value} -> {event.to_provider.value} ({event.reason})"
    if isinstance(event, ProviderHealthEvent):
        line = f"[health] {event.provider.value}: {event.health.value}"
        return f"{line} - {event.detail}" if event.detail else line
    return repr(event)


async def run_chat(orchestrator: FallbackOrchestrator, args: argparse.Namespace) -> int:
    """Send the prompt and print the outcome. Returns the process exit code."""
    events: list[RuntimeEvent] = []
    unsubscribe = orchestrator.subscribe_runtime_events(events.append)

    def on_tool(event: ToolInvocationEvent) -> None:
        if args.verbose:
            print(f"\n[tool] {event.provider.value}: {event.name} {event.args}", file=sys.stderr)

    options = SendOptions(
        provider=ProviderKind(args.provider) if args.provider else None,
        system_prompt=args.system,
        timeout_ms=args.timeout_ms,
        enable_fallback=False if args.no_fallback else None,
        on_token=(lambda token: print(token, end="", flush=True)) if args.stream else None,
        on_tool_invocation=on_tool,
    )

    try:
        result = await orchestrator.send_message(
            [Message(role="user", content=args.prompt)], options
        )
    except ClassifiedError as e:
        print(f"\nERROR [{e.kind.value}]: {e.message}", file=sys.stderr)
        for event in events:
            print(f"  {format_event(event)}", file=sys.stderr)
        return 1
    finally:
        unsubscribe()

    if args.stream:
        print()
    else:
        print(result.text)

    print("-" * 60)
    print(f"Provider: {result.provider.value}")
    if result.fallback_used:
        print("Fallback: used (primary provider failed)")
    if args.verbose or result.fallback_used:
        for event in events:
            print(f"  {format_event(event)}")
    return 0


async def run_validate(orchestrator: FallbackOrchestrator, provider: ProviderKind, key: str) -> int:
    valid = await orchestrator.validate_key(provider, key)
    print(f"{provider.value}: {'valid' if valid else 'INVALID'}")
    return 0 if valid else 1


def main():
    """Main entry point for the chat CLI."""
    parser = argparse.ArgumentParser(
        description="Send a prompt through the ForgePad provider fallback chain",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/chat_cli.py "Hello"                         Use stored default provider
  python scripts/chat_cli.py "Hello" --provider anthropic    Try Anthropic first
  python scripts/chat_cli.py "Hello" --no-fallback           Fail on first error
  python scripts/chat_cli.py --validate openai --openai-key sk-...
        """,
    )

    parser.add_argument("prompt", nargs="?", help="Prompt to send")
    parser.add_argument(
        "--provider",
        choices=[p.value for p in ProviderKind],
        help="Provider to try first",
    )
    parser.add_argument("--system", help="System prompt to prepend")
    parser.add_argument("--timeout-ms", type=int, help="Per-attempt timeout in milliseconds")
    parser.add_argument("--no-fallback", action="store_true", help="Disable provider fallback")
    parser.add_argument("--stream", action="store_true", help="Print tokens as they arrive")
    parser.add_argument("--store", help="JSON file backing the credential store")
    parser.add_argument("--gemini-key", help="Save a Gemini key before sending")
    parser.add_argument("--openai-key", help="Save an OpenAI key before sending")
    parser.add_argument("--anthropic-key", help="Save an Anthropic key before sending")
    parser.add_argument(
        "--validate",
        choices=[p.value for p in ProviderKind],
        help="Validate the key given for this provider instead of chatting",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Show all runtime events")

    args = parser.parse_args()

    settings = get_settings()
    configure_logging(settings)

    store = ProviderStore(path=args.store or settings.store_path, settings=settings)
    keys = {
        ProviderKind.GEMINI: args.gemini_key,
        ProviderKind.OPENAI: args.openai_key,
        ProviderKind.ANTHROPIC: args.anthropic_key,
    }
    keys = {provider: key for provider, key in keys.items() if key}

    orchestrator = FallbackOrchestrator(store, settings)

    if args.validate:
        provider = ProviderKind(args.validate)
        if provider not in keys:
            print(f"ERROR: --{provider.value}-key is required with --validate {provider.value}")
            sys.exit(2)
        sys.exit(asyncio.run(run_validate(orchestrator, provider, keys[provider])))

    if not args.prompt:
        parser.error("a prompt is required unless --validate is given")

    if keys:
        store.save_credentials(keys)

    sys.exit(asyncio.run(run_chat(orchestrator, args)))


if __name__ == "__main__":
    main()
