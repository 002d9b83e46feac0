"""ReAct loop behaviour against a scripted LLM."""

from __future__ import annotations

import pytest

from llm_react import AgentConfig, LLMConfig, ReActAgent
from llm_react.errors import AuthenticationError, ProviderError, ValidationError
from llm_react.llm.base import Response, Role, TokenUsage
from llm_react.prompt import MAX_ITERATIONS_ANSWER, NO_ACTION_OBSERVATION
from llm_react.tools import CalculatorTool, EchoTool, Tool, ToolRegistry
from tests.conftest import ScriptedLLM, SlowTool

pytestmark = pytest.mark.unit


class FailingTool(Tool):
    name = "Flaky"
    description = "Fails every time."

    def execute(self, tool_input: str) -> str:
        raise RuntimeError("database unavailable")


def test_direct_final_answer() -> None:
    llm = ScriptedLLM(["Thought: easy\nFinal Answer: 4"])
    agent = ReActAgent(llm=llm, tools=[CalculatorTool()])

    result = agent.run("What is 2 + 2?")

    assert result.completed
    assert result.final_answer == "4"
    assert result.iterations == 1
    assert result.steps == ()


def test_tool_call_then_final_answer() -> None:
    llm = ScriptedLLM(
        [
            "Thought: I need to calculate\nAction: Calculator\nAction Input: 2 + 2",
            "Thought: I now know the final answer\nFinal Answer: 4",
        ]
    )
    agent = ReActAgent(llm=llm, tools=[CalculatorTool()])

    result = agent.run("What is 2 + 2?")

    assert result.completed
    assert result.final_answer == "4"
    assert result.iterations == 2
    assert len(result.steps) == 1
    step = result.steps[0]
    assert step.action == "Calculator"
    assert step.action_input == "2 + 2"
    assert step.observation == "4"


def test_observation_is_fed_back_to_the_model() -> None:
    llm = ScriptedLLM(
        [
            "Thought: compute\nAction: calculator\nAction Input: 15 * 23",
            "Final Answer: 345",
        ]
    )
    agent = ReActAgent(llm=llm, tools=[CalculatorTool()])

    agent.run("What is 15 * 23?")

    second = llm.requests[1]
    assert second.messages[0].role is Role.SYSTEM
    scratchpad = second.messages[1].content
    assert scratchpad.startswith("Question: What is 15 * 23?\n")
    assert "Action: calculator\nAction Input: 15 * 23\nObservation: 345\n" in scratchpad


def test_unknown_tool_is_reported_and_loop_continues() -> None:
    llm = ScriptedLLM(
        [
            "Thought: search\nAction: WebSearch\nAction Input: weather",
            "Final Answer: I could not search.",
        ]
    )
    agent = ReActAgent(llm=llm, tools=[EchoTool()])

    result = agent.run("Weather?")

    observation = result.steps[0].observation
    assert "Unknown tool" in observation
    assert "WebSearch" in observation
    assert "Echo" in observation
    assert result.completed


def test_max_iterations_without_final_answer() -> None:
    llm = ScriptedLLM(["Thought: again\nAction: Echo\nAction Input: hi"])
    agent = ReActAgent(llm=llm, tools=[EchoTool()], agent_config=AgentConfig(max_iterations=3))

    result = agent.run("Loop forever")

    assert not result.completed
    assert result.final_answer == MAX_ITERATIONS_ANSWER
    assert "Maximum iterations reached" in result.final_answer
    assert result.iterations == 3
    assert len(result.steps) == 3
    assert len(llm.requests) == 3


def test_tool_failure_becomes_observation() -> None:
    llm = ScriptedLLM(["Action: Flaky\nAction Input: x", "Final Answer: gave up"])
    agent = ReActAgent(llm=llm, tools=[FailingTool()])

    result = agent.run("Try the flaky tool")

    assert "database unavailable" in result.steps[0].observation
    assert result.final_answer == "gave up"


def test_reply_without_action_adds_no_step() -> None:
    llm = ScriptedLLM(["I am thinking out loud.", "Final Answer: done"])
    agent = ReActAgent(llm=llm, tools=[EchoTool()])

    result = agent.run("Anything")

    assert result.steps == ()
    assert result.iterations == 2
    assert f"Observation: {NO_ACTION_OBSERVATION}" in llm.requests[1].messages[1].content


def test_system_prompt_names_registered_tools() -> None:
    llm = ScriptedLLM(["Final Answer: ok"])
    agent = ReActAgent(llm=llm, tools=ToolRegistry([CalculatorTool(), EchoTool()]))

    agent.run("hi")

    system = llm.requests[0].messages[0].content
    assert "Calculator" in system
    assert "Echo" in system
    assert system == agent.system_prompt


def test_custom_system_prompt_template() -> None:
    llm = ScriptedLLM(["Final Answer: ok"])
    agent = ReActAgent(llm=llm, tools=[EchoTool()], system_prompt="Only use: {tool_names}")

    agent.run("hi")

    assert llm.requests[0].messages[0].content == "Only use: Echo"


def test_agent_config_flows_into_requests() -> None:
    llm = ScriptedLLM(["Final Answer: ok"])
    config = AgentConfig(temperature=0.1, max_tokens=256, model="gpt-4o-mini", stop_sequences=("Observation:",))
    agent = ReActAgent(llm=llm, agent_config=config)

    agent.run("hi")

    request = llm.requests[0]
    assert request.temperature == 0.1
    assert request.max_tokens == 256
    assert request.model == "gpt-4o-mini"
    assert request.stop_sequences == ("Observation:",)


def test_provider_errors_propagate() -> None:
    llm = ScriptedLLM([AuthenticationError("OpenAI API key is required")])
    agent = ReActAgent(llm=llm, tools=[EchoTool()])

    with pytest.raises(AuthenticationError):
        agent.run("hi")


def test_provider_error_mid_run_propagates() -> None:
    llm = ScriptedLLM(["Action: Echo\nAction Input: hi", ProviderError("openai", "overloaded")])
    agent = ReActAgent(llm=llm, tools=[EchoTool()])

    with pytest.raises(ProviderError, match="overloaded"):
        agent.run("hi")


def test_token_usage_is_summed_across_iterations() -> None:
    llm = ScriptedLLM(
        [
            Response(content="Action: Echo\nAction Input: hi", usage=TokenUsage.of(100, 10)),
            Response(content="Final Answer: hi", usage=TokenUsage.of(120, 5)),
        ]
    )
    agent = ReActAgent(llm=llm, tools=[EchoTool()])

    result = agent.run("Say hi")

    assert result.token_usage == TokenUsage(220, 15, 235)
    assert result.to_dict()["token_usage"]["total_tokens"] == 235


def test_agent_requires_an_llm() -> None:
    with pytest.raises(ValidationError):
        ReActAgent()


def test_agent_built_from_llm_config_validates_credentials() -> None:
    with pytest.raises(AuthenticationError):
        ReActAgent(llm_config=LLMConfig(provider_type="openai", api_key=""))


def test_result_serializes() -> None:
    llm = ScriptedLLM(["Action: Echo\nAction Input: hi", "Final Answer: hi"])
    result = ReActAgent(llm=llm, tools=[EchoTool()]).run("Say hi")

    data = result.to_dict()

    assert data["completed"] is True
    assert data["steps"] == [{"thought": None, "action": "Echo", "action_input": "hi", "observation": "hi"}]
    assert data["token_usage"] is None


def test_tool_timeout_does_not_let_steps_overlap() -> None:
    tool = SlowTool(0.2)
    llm = ScriptedLLM(
        [
            "Action: Slow\nAction Input: first",
            "Action: Slow\nAction Input: second",
            "Final Answer: done",
        ]
    )
    agent = ReActAgent(llm=llm, tools=[tool], agent_config=AgentConfig(tool_timeout=0.05))

    result = agent.run("Call the slow tool twice")

    assert [step.action_input for step in result.steps] == ["first", "second"]
    assert all("timed out" in step.observation for step in result.steps)
    assert tool.calls == 2
    assert tool.peak == 1
    assert tool.active == 0


def test_close_releases_a_client_built_from_config() -> None:
    agent = ReActAgent(llm_config=LLMConfig(provider_type="openai", api_key="k"))
    http_client = agent.llm.provider.transport.client

    with agent:
        assert not http_client.is_closed

    assert http_client.is_closed


def test_close_leaves_an_injected_client_open() -> None:
    llm = ScriptedLLM(["Final Answer: ok"])

    with ReActAgent(llm=llm) as agent:
        agent.run("hi")

    assert not llm.closed
