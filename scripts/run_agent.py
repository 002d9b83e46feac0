#!/usr/bin/env python3
"""
Run the ReAct agent against one or more questions from the command line.

Reads provider credentials from the environment (and ``.env``), registers
the built-in tools, and prints each answer with its steps and token usage.

    python scripts/run_agent.py "What is 15 * 23?" --provider anthropic
    python scripts/run_agent.py --questions-file questions.json --output data/results.json
"""

import json
import logging
import sys
import time
from pathlib import Path

# ── Ensure the repo root is on sys.path ─────────────────────────
SCRIPT_DIR = Path(__file__).resolve().parent
REPO_ROOT = SCRIPT_DIR.parent
sys.path.insert(0, str(REPO_ROOT))

# ── Load .env from the repo root ────────────────────────────────
from dotenv import load_dotenv

repo_env = REPO_ROOT / ".env"
if repo_env.exists():
    load_dotenv(repo_env, override=False)

# ── Imports ──────────────────────────────────────────────────────
from loguru import logger

from llm_react import AgentConfig, LLMConfig, LLMError, ReActAgent
from llm_react.tools import CalculatorTool, CurrentTimeTool, EchoTool, ToolRegistry


# ── Question loading ─────────────────────────────────────────────

def load_questions(path: Path) -> list[str]:
    """Load questions from a JSON list of strings or of ``{"question": ...}`` objects."""
    with open(path) as f:
        data = json.load(f)

    raw = data["questions"] if isinstance(data, dict) and "questions" in data else data

    questions: list[str] = []
    for item in raw:
        if isinstance(item, dict):
            item = item.get("question", "")
        if str(item).strip():
            questions.append(str(item).strip())
    return questions


# ── Runner ───────────────────────────────────────────────────────

def run_questions(
    questions: list[str],
    provider: str | None = None,
    model: str | None = None,
    max_iterations: int = 10,
    temperature: float = 0.0,
    verbose: bool = False,
) -> dict:
    overrides: dict = {"enable_logging": verbose}
    if model:
        overrides["model_name"] = model
    llm_config = LLMConfig.from_env(provider, **overrides)

    tools = ToolRegistry([CalculatorTool(), EchoTool(), CurrentTimeTool()])
    agent = ReActAgent(
        llm_config=llm_config,
        tools=tools,
        agent_config=AgentConfig(
            max_iterations=max_iterations,
            temperature=temperature,
            stop_sequences=("\nObservation:",),
        ),
    )

    logger.info(f"Provider: {llm_config.provider_type} | tools: {', '.join(tools.names())}")

    results: dict = {
        "provider": llm_config.provider_type,
        "model": agent.llm.provider.config.model_name,
        "num_questions": len(questions),
        "completed": 0,
        "errors": 0,
        "runs": [],
    }

    t_start = time.time()
    for i, question in enumerate(questions, start=1):
        logger.info(f"[{i}/{len(questions)}] {question}")
        t_q = time.time()
        try:
            result = agent.run(question)
        except LLMError as e:
            results["errors"] += 1
            results["runs"].append({
                "question": question,
                "error": str(e),
                "error_kind": e.kind.value,
                "seconds": round(time.time() - t_q, 4),
            })
            logger.error(f"  -> ERROR ({e.kind.value}): {e}")
            continue

        if result.completed:
            results["completed"] += 1
        for n, step in enumerate(result.steps, start=1):
            logger.debug(f"  step {n}: {step.action}({step.action_input!r}) -> {step.observation}")
        logger.info(f"  -> {result.final_answer} ({result.iterations} iterations)")

        run = result.to_dict()
        run["question"] = question
        run["seconds"] = round(time.time() - t_q, 4)
        results["runs"].append(run)
    elapsed = time.time() - t_start
    agent.close()

    # ── Summary ──────────────────────────────────────────────────
    total = results["num_questions"]
    total_tokens = sum(
        (run.get("token_usage") or {}).get("total_tokens", 0) for run in results["runs"]
    )
    results["total_seconds"] = round(elapsed, 4)
    results["total_tokens"] = total_tokens

    print("\n" + "=" * 60)
    print("  AGENT RUN RESULTS")
    print("=" * 60)
    print(f"  Provider:       {results['provider']}")
    print(f"  Model:          {results['model']}")
    print(f"  Questions:      {total}")
    print(f"  Completed:      {results['completed']}")
    print(f"  Errors:         {results['errors']}")
    print(f"  Total tokens:   {total_tokens}")
    print(f"  Total time:     {elapsed:.1f}s")
    print("=" * 60)

    return results


# ── CLI ──────────────────────────────────────────────────────────

def main():
    import argparse

    parser = argparse.ArgumentParser(description="llm_react - run the ReAct agent")
    parser.add_argument("questions", nargs="*", help="Questions to answer")
    parser.add_argument("--questions-file", default=None, help="JSON file with a list of questions")
    parser.add_argument("--provider", default=None, help="openai, anthropic or gemini (default: $LLM_PROVIDER)")
    parser.add_argument("--model", default=None, help="Model name (default: $LLM_MODEL or provider default)")
    parser.add_argument("--max-iterations", type=int, default=10, help="Max LLM calls per question")
    parser.add_argument("--temperature", type=float, default=0.0, help="LLM temperature")
    parser.add_argument("--output", default=None, help="Write results JSON to this path")
    parser.add_argument("--verbose", action="store_true", help="Log HTTP traffic and agent steps")
    args = parser.parse_args()

    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if args.verbose else "INFO")
    # llm_react itself logs through the standard logging module.
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    questions = list(args.questions)
    if args.questions_file:
        questions.extend(load_questions(Path(args.questions_file)))
    if not questions:
        parser.error("no questions given")

    results = run_questions(
        questions,
        provider=args.provider,
        model=args.model,
        max_iterations=args.max_iterations,
        temperature=args.temperature,
        verbose=args.verbose,
    )

    if args.output:
        out_path = Path(args.output)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        with open(out_path, "w") as f:
            json.dump(results, f, indent=2)
        print(f"  Results saved to: {out_path}\n")

    sys.exit(1 if results["errors"] else 0)


if __name__ == "__main__":
    main()
