#!/usr/bin/env python3
"""
Avalanche Forecast Assistant Agent
An MCP-powered agent that answers avalanche questions with the CAIC tool server.
"""

import json
import logging
import sys
from typing import Any, Callable, Dict, Optional

from avalanche import MCPClientError, MCPStdIOClient
from avalanche.logs import attach_file_handler, log_path
from config import MAX_STEPS, MODEL, SYSTEM_PROMPT, TOOLS

# MCP server configuration
MCP_SERVER_COMMAND = [sys.executable, "-m", "avalanche.server"]

agent_logger = attach_file_handler(logging.getLogger("avalanche_agent"), log_path("agent_tools.log"))
# Raw model responses, one entry per model call
response_logger = attach_file_handler(logging.getLogger("avalanche_agent.responses"), log_path("ai_responses.log"))

STEP_LIMIT_MESSAGE = "I wasn't able to finish looking that up. Please try asking again more specifically."


class AvalancheAgent:
    """Runs the tool-use loop between the model and the avalanche tool server.

    Args:
        llm: An `anthropic.Anthropic` client; created from the environment when omitted
        mcp_client: Tool server client; `start_mcp_server()` creates one when omitted
        max_steps: Maximum number of model calls per user message
    """

    def __init__(self, llm=None, mcp_client=None, model: str = MODEL, max_steps: int = MAX_STEPS):
        if llm is None:
            import anthropic
            llm = anthropic.Anthropic()
        self.llm = llm
        self.mcp_client = mcp_client
        self.model = model
        self.max_steps = max_steps
        self.conversation_history: list[dict] = []

    def start_mcp_server(self) -> None:
        """Start the avalanche tool server via an stdio JSON-RPC client"""
        if self.mcp_client is None:
            self.mcp_client = MCPStdIOClient(MCP_SERVER_COMMAND)
        self.mcp_client.start()
        agent_logger.info("MCP Avalanche Server started")

    def stop_mcp_server(self) -> None:
        if self.mcp_client:
            self.mcp_client.stop()
            self.mcp_client = None
            agent_logger.info("MCP Avalanche Server stopped")

    def call_mcp_tool(self, tool_name: str, parameters: Dict[str, Any]) -> Dict[str, Any]:
        """Call a tool on the server, folding client errors into the result."""
        if not self.mcp_client:
            return {"error": "MCP server not started"}
        try:
            return {"result": self.mcp_client.call_tool(tool_name, parameters)}
        except MCPClientError as e:
            return {"error": str(e)}

    def chat(self, user_message: str, on_text: Optional[Callable[[str], None]] = None) -> str:
        """Process a user message and return the agent's response.

        `on_text` receives any interim text the model emits alongside tool calls.
        """
        self.conversation_history.append({"role": "user", "content": user_message})

        for _ in range(self.max_steps):
            response = self.llm.messages.create(
                model=self.model,
                max_tokens=4096,
                system=SYSTEM_PROMPT,
                tools=TOOLS,
                messages=self.conversation_history,
            )
            response_logger.info(repr(response))

            if response.stop_reason == "tool_use":
                self.conversation_history.append({"role": "assistant", "content": response.content})
                tool_results = []
                for block in response.content:
                    if block.type == "text" and on_text:
                        on_text(block.text)
                    if block.type == "tool_use":
                        agent_logger.info(f"Agent tool call: {block.name} - Parameters: {block.input}")
                        result = self.call_mcp_tool(block.name, block.input)
                        agent_logger.info(f"Agent tool result: {block.name} - Result: {result}")
                        tool_results.append({
                            "type": "tool_result",
                            "tool_use_id": block.id,
                            "content": json.dumps(result),
                        })
                self.conversation_history.append({"role": "user", "content": tool_results})

            elif response.stop_reason == "end_turn":
                final_response = "".join(block.text for block in response.content if block.type == "text")
                self.conversation_history.append({"role": "assistant", "content": final_response})
                return final_response

            else:
                agent_logger.warning(f"Unexpected stop reason: {response.stop_reason}")
                return "I encountered an error processing your request."

        agent_logger.warning(f"Step limit of {self.max_steps} reached")
        return STEP_LIMIT_MESSAGE


def main():
    print("=" * 60)
    print("🏔️  Colorado Avalanche Forecast Assistant")
    print("=" * 60)
    print("\nAsk about avalanche danger, regional discussions or warnings")
    print("anywhere in Colorado's CAIC forecast zones.\n")
    print("Commands: 'quit' or 'exit' to stop\n")

    agent = AvalancheAgent()
    try:
        agent.start_mcp_server()
    except MCPClientError:
        agent_logger.exception("Failed to start MCP server")
        print("✗ Failed to start MCP server (see agent log for details).")
        sys.exit(1)

    try:
        while True:
            user_input = input("\n💬 You: ").strip()

            if user_input.lower() in ["quit", "exit", "bye"]:
                print("\n👋 Stay safe out there!")
                break

            if not user_input:
                continue

            print("\n🤔 Checking the forecast...")
            response = agent.chat(user_input, on_text=print)
            print(f"\n🏔️  Agent: {response}")

    except KeyboardInterrupt:
        print("\n\n👋 Stay safe out there!")
    finally:
        agent.stop_mcp_server()


if __name__ == "__main__":
    main()
