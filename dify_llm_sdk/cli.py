"""CLI entry point for Dify LLM SDK."""

import argparse
import asyncio
import sys
from typing import Optional

from .config.constants import PROVIDER_METADATA_KEY
from .config.settings import DifyChatSettings, DifyProviderSettings
from .models.conversation_types import ConversationMessage, TurnRole
from .models.generation import CallOptions
from .models.stream_parts import StreamPart
from .providers.base import ProviderError
from .providers.dify import create_dify_provider
from .providers.errors import InvalidPromptError


def print_execution_report(metadata: dict):
    """Print conversation ids and the workflow execution report of a finish part."""
    dify_data = metadata.get(PROVIDER_METADATA_KEY) or {}
    print(f"   Conversation ID: {dify_data.get('conversationId')}")
    print(f"   Message ID: {dify_data.get('messageId')}")

    execution = dify_data.get("workflowExecution")
    if not execution:
        return
    print(f"\nWorkflow {execution.get('workflowId')}: {execution.get('duration')}s")
    for index, node in enumerate(execution.get("nodes") or [], start=1):
        duration = node.get("duration")
        print(f"   {index}. {node.get('nodeType')} ({node.get('nodeId')}): "
              f"{duration if duration is not None else 'N/A'}s")


def print_part(part: StreamPart, verbose: bool = False):
    """Print one stream part."""
    if part.type == "reasoning-start":
        print(f"[thinking {part.id}]")
    elif part.type == "reasoning-delta":
        print(part.delta, end="", flush=True)
    elif part.type == "reasoning-end":
        print("\n[/thinking]\n")
    elif part.type == "text-delta":
        print(part.delta, end="", flush=True)
    elif part.type == "text-end":
        print()
    elif part.type == "response-metadata" and verbose:
        timestamp = part.timestamp.isoformat() if part.timestamp else None
        print(f"[metadata id={part.id} timestamp={timestamp}]")
    elif part.type == "raw" and verbose:
        raw = part.raw_value
        event = raw.get("difyEvent")
        if event == "node_started":
            data = raw.get("data") or {}
            print(f"[node started {data.get('node_type')} ({data.get('node_id')})]")
        elif event in ("node_finished", "workflow_finished"):
            print(f"[{event} in {raw.get('duration')}s]")
        elif event == "agent_thought":
            print(f"[agent thought: {raw.get('thought')}]")
    elif part.type == "finish":
        usage = part.usage
        print(f"\nTokens used: input={usage.input_tokens} "
              f"output={usage.output_tokens} total={usage.total_tokens}")
        print_execution_report(part.provider_metadata)
    elif part.type == "error":
        print(f"\nError: {part.error}", file=sys.stderr)


async def chat(app_id: str, query: str, user_id: Optional[str] = None,
               chat_id: Optional[str] = None, blocking: bool = False,
               api_key: Optional[str] = None, base_url: Optional[str] = None,
               verbose: bool = False) -> int:
    """Send one query to a Dify application and print the answer."""
    provider = create_dify_provider(DifyProviderSettings.from_env(api_key=api_key, base_url=base_url))
    settings = DifyChatSettings(response_mode="blocking" if blocking else "streaming")

    try:
        model = provider.chat(app_id, settings)
        options = CallOptions(
            prompt=[ConversationMessage(role=TurnRole.USER, content=query)],
            headers={"user-id": user_id, "chat-id": chat_id},
        )

        try:
            if settings.response_mode == "blocking":
                result = await model.generate(options)
                print(result.text)
                print(f"\nTokens used: {result.usage.model_dump()}")
                print_execution_report(result.provider_metadata)
            else:
                stream_result = await model.stream(options)
                async for part in stream_result.stream:
                    print_part(part, verbose)
        finally:
            await model.aclose()
    except (ProviderError, InvalidPromptError) as e:
        print(f"Error: {str(e)}", file=sys.stderr)
        return 1
    return 0


def main():
    """Main CLI function."""
    parser = argparse.ArgumentParser(description="Dify LLM SDK CLI")
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # Chat command
    chat_parser = subparsers.add_parser('chat', help='Send a query to a Dify chat application')
    chat_parser.add_argument('app_id', help='Application identifier (used for logging)')
    chat_parser.add_argument('query', help='User query')
    chat_parser.add_argument('--user-id', help='End-user identifier')
    chat_parser.add_argument('--chat-id', help='Conversation to continue')
    chat_parser.add_argument('--blocking', action='store_true', help='Use blocking response mode')
    chat_parser.add_argument('--api-key', help='Application API key (defaults to DIFY_API_KEY)')
    chat_parser.add_argument('--base-url', help='API base URL (defaults to DIFY_BASE_URL)')
    chat_parser.add_argument('-v', '--verbose', action='store_true',
                             help='Print metadata and workflow events')

    args = parser.parse_args()

    if args.command == 'chat':
        sys.exit(asyncio.run(chat(
            args.app_id,
            args.query,
            user_id=args.user_id,
            chat_id=args.chat_id,
            blocking=args.blocking,
            api_key=args.api_key,
            base_url=args.base_url,
            verbose=args.verbose,
        )))
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
