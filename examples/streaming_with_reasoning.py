"""
Example: Streaming with reasoning and workflow telemetry

This example streams a Dify chat application, prints reasoning and answer
text on separate channels, and reports token usage plus the workflow
execution summary carried by the finish part.

Set DIFY_API_KEY (and optionally DIFY_BASE_URL) before running.
"""

import asyncio

from dify_llm_sdk import (
    CallOptions,
    ConversationMessage,
    ConversationRole,
    DifyChatSettings,
    create_dify_provider,
)


async def example_streaming_with_reasoning():
    """Stream an answer and print each part as it arrives."""
    print("=== Streaming with Reasoning ===\n")

    provider = create_dify_provider()
    model = provider.chat("your-dify-application-id", DifyChatSettings(response_mode="streaming"))

    result = await model.stream(CallOptions(
        prompt=[ConversationMessage(
            role=ConversationRole.USER,
            content="Explain the basic principles of quantum computing and think it through.",
        )],
        headers={
            "user-id": "example-user-123",
            # "chat-id": "existing-conversation-id",  # continue a conversation
        },
    ))

    async for part in result.stream:
        if part.type == "reasoning-start":
            print(f"Reasoning started (ID: {part.id})")
        elif part.type == "reasoning-delta":
            print(f"  {part.delta}")
        elif part.type == "reasoning-end":
            print(f"Reasoning finished (ID: {part.id})\n")
        elif part.type == "text-start":
            print(f"Answer (ID: {part.id}):")
        elif part.type == "text-delta":
            print(part.delta, end="", flush=True)
        elif part.type == "text-end":
            print("\n")
        elif part.type == "raw":
            raw = part.raw_value
            if raw["difyEvent"] == "workflow_started":
                print(f"Workflow started: {raw.get('workflow_run_id')}")
            elif raw["difyEvent"] == "node_started":
                data = raw.get("data") or {}
                print(f"Node started: {data.get('node_type')} ({data.get('node_id')})")
            elif raw["difyEvent"] == "node_finished":
                print(f"Node finished in {raw.get('duration')}s")
        elif part.type == "finish":
            print("Usage:")
            print(f"  Input: {part.usage.input_tokens}")
            print(f"  Output: {part.usage.output_tokens}")
            print(f"  Total: {part.usage.total_tokens}")

            dify_data = part.provider_metadata["difyWorkflowData"]
            print(f"Conversation ID: {dify_data['conversationId']}")
            execution = dify_data["workflowExecution"]
            if execution:
                print(f"Workflow {execution['workflowId']} took {execution['duration']}s")
                for index, node in enumerate(execution["nodes"], start=1):
                    print(f"  {index}. {node['nodeType']} ({node['nodeId']}): {node['duration']}s")
        elif part.type == "error":
            print(f"Error: {part.error}")

    await model.aclose()


async def example_blocking():
    """Blocking mode returns the answer verbatim, reasoning markers included."""
    print("\n=== Blocking ===\n")

    model = create_dify_provider().chat("your-dify-application-id")
    result = await model.generate(CallOptions(
        prompt=[{"role": "user", "content": "Count from 1 to 5"}],
        headers={"user-id": "example-user-123"},
    ))
    print(result.text)
    print(f"\nTokens used: {result.usage.total_tokens}")

    await model.aclose()


async def main():
    await example_streaming_with_reasoning()
    await example_blocking()


if __name__ == "__main__":
    asyncio.run(main())
