"""
ReAct agent – the bounded Reason + Act loop.

Each iteration:
1. Sends the system prompt (tool catalog + protocol) and the scratchpad
2. Parses the reply for a Final Answer, else Thought / Action / Action Input
3. Runs the named tool and appends the observation to the scratchpad
4. Stops on a Final Answer or after ``max_iterations`` replies
"""

import logging
from typing import Iterable, List, Optional, Union

from .config import AgentConfig, LLMConfig
from .errors import LLMError, ValidationError
from .llm import LLMClient, create_from_config
from .llm.base import BaseLLMProvider, Message, Request, TokenUsage
from .models import AgentResult, AgentStep
from .prompt import (
    MAX_ITERATIONS_ANSWER,
    build_system_prompt,
    format_missing_action,
    format_step,
    parse_output,
)
from .tools import Tool, ToolExecutor, ToolRegistry

logger = logging.getLogger(__name__)


class ReActAgent:
    """
    A ReAct agent over any provider.

    Example::

        from llm_react import LLMConfig, ReActAgent
        from llm_react.tools import CalculatorTool

        agent = ReActAgent(
            llm_config=LLMConfig(provider_type="openai", api_key="sk-...", model_name="gpt-4o"),
            tools=[CalculatorTool()],
        )
        result = agent.run("What is 15 * 23?")
        print(result.final_answer, result.iterations)

    Provider failures (bad credentials, rejected requests, exhausted
    retries) propagate to the caller. Tool failures and unparseable replies
    never do: they become observations the model sees on the next turn.
    """

    def __init__(
        self,
        llm: Optional[Union[LLMClient, BaseLLMProvider]] = None,
        tools: Optional[Union[ToolRegistry, Iterable[Tool]]] = None,
        system_prompt: Optional[str] = None,
        agent_config: Optional[AgentConfig] = None,
        llm_config: Optional[LLMConfig] = None,
        name: str = "react-agent",
    ):
        # LLM – either inject a client/provider directly or provide config
        self._owns_llm = llm is None and llm_config is not None
        if self._owns_llm:
            llm = LLMClient(create_from_config(llm_config))
        if llm is None:
            raise ValidationError("ReActAgent needs an llm client or an llm_config")

        self.name = name
        self.llm = llm
        self.agent_config = agent_config or AgentConfig()
        self.system_prompt_template = system_prompt

        if isinstance(tools, ToolRegistry):
            self.tool_registry = tools
        else:
            self.tool_registry = ToolRegistry(list(tools or []))
        self.tool_executor = ToolExecutor(
            registry=self.tool_registry,
            default_timeout=self.agent_config.tool_timeout,
        )

    @property
    def system_prompt(self) -> str:
        return build_system_prompt(self.tool_registry, self.system_prompt_template)

    def close(self) -> None:
        """Release the client built from ``llm_config``. Injected clients are left to their owner."""
        if self._owns_llm:
            self.llm.close()

    def __enter__(self) -> "ReActAgent":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ── Main entry point ─────────────────────────────────────────

    def run(self, question: str) -> AgentResult:
        """Answer ``question``, calling tools as the model asks for them."""
        if question is None:
            raise ValidationError("question cannot be None")

        config = self.agent_config
        system_prompt = self.system_prompt
        scratchpad = f"Question: {question}\n"
        steps: List[AgentStep] = []
        usage: Optional[TokenUsage] = None

        for iteration in range(1, config.max_iterations + 1):
            logger.debug(f"Agent '{self.name}' iteration {iteration}/{config.max_iterations}")

            request = Request(
                messages=(Message.system(system_prompt), Message.user(scratchpad)),
                model=config.model,
                temperature=config.temperature,
                max_tokens=config.max_tokens,
                stop_sequences=config.stop_sequences,
            )
            try:
                response = self.llm.chat(request)
            except LLMError as e:
                logger.error(f"Agent '{self.name}' aborted at iteration {iteration}: {e}")
                raise

            if response.usage is not None:
                usage = response.usage if usage is None else usage + response.usage

            output = response.content or ""
            logger.debug(f"LLM output:\n{output}")
            parsed = parse_output(output, config.multiline_final_answer)

            if parsed.is_final:
                logger.info(f"Agent '{self.name}' found final answer: {parsed.final_answer}")
                return AgentResult(
                    final_answer=parsed.final_answer,
                    steps=tuple(steps),
                    iterations=iteration,
                    completed=True,
                    token_usage=usage,
                )

            if not parsed.has_action:
                logger.warning(f"No action found in iteration {iteration}")
                scratchpad += format_missing_action(output)
                continue

            observation = self.tool_executor.observe(parsed.action, parsed.action_input or "")
            step = AgentStep(
                thought=parsed.thought,
                action=parsed.action,
                action_input=parsed.action_input,
                observation=observation,
            )
            steps.append(step)
            scratchpad += format_step(step)

        logger.warning(
            f"Agent '{self.name}' reached max iterations ({config.max_iterations}) "
            "without finding a final answer"
        )
        return AgentResult(
            final_answer=MAX_ITERATIONS_ANSWER,
            steps=tuple(steps),
            iterations=config.max_iterations,
            completed=False,
            token_usage=usage,
        )
