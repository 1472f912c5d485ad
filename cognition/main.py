"""Interactive entry point: chat with the pipeline from the terminal."""

import asyncio
import logging

from cognition.config import settings
from cognition.engine import CognitiveEngine
from cognition.learning import LearningEngine, PatternStore, SweepScheduler
from cognition.modules import ModuleRegistry

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=getattr(logging, settings.log_level),
)
logger = logging.getLogger(__name__)

PROMPT = "you> "
EXIT_COMMANDS = frozenset({"exit", "quit", ":q"})


def build_engine(registry: ModuleRegistry | None = None) -> CognitiveEngine:
    """Wire a CognitiveEngine with a SQLite-backed learning engine."""
    learning = LearningEngine(
        store=PatternStore(settings.database_path),
        scheduler=SweepScheduler(settings.scheduler_timezone),
    )
    engine = CognitiveEngine(learning_engine=learning)
    return engine.initialize(registry or ModuleRegistry())


async def chat(engine: CognitiveEngine) -> None:
    """Read lines from stdin until EOF or an exit command."""
    await engine.learning_engine.load()
    await engine.start()
    try:
        while True:
            try:
                line = await asyncio.to_thread(input, PROMPT)
            except EOFError:
                break
            text = line.strip()
            if not text:
                continue
            if text.lower() in EXIT_COMMANDS:
                break

            result = await engine.process_input(text)
            print(f"bot> {result.response}")
            print(f"     confidence {result.confidence:.2f} via {', '.join(result.sources)}")
            for note in result.reasoning:
                print(f"     - {note}")
    finally:
        await engine.stop()


def main() -> None:
    """Start an interactive session."""
    logger.info("Starting cognition chat (database: %s)", settings.database_path)
    try:
        asyncio.run(chat(build_engine()))
    except KeyboardInterrupt:
        logger.info("Interrupted")


if __name__ == "__main__":
    main()
