"""Demo of the stage board server with simulated workers moving tasks."""

import time
from random import choice, random
from threading import Thread

from loguru import logger

from stage_board.board import BoardStore, CreateTask, DeleteTask, MoveBack, MoveForward
from stage_board.board.server import start_server
from stage_board.utils.logging import setup_logger


def simulate_worker(store: BoardStore, task_name: str) -> None:
    """Create a task and push it through the pipeline, sometimes slipping back."""
    result = store.dispatch(CreateTask(task_name))
    task_id = result.state.tasks[-1].id
    logger.info(f"Created task: {task_name} ({task_id})")

    while True:
        time.sleep(random() * 2)
        task = store.state.find_task(task_id)
        if task is None:
            return
        if task.stage == store.state.last_stage:
            break
        store.dispatch(choice([MoveForward, MoveForward, MoveForward, MoveBack])(task_id))

    logger.success(f"Finished task: {task_name}")
    time.sleep(5)
    store.dispatch(DeleteTask(task_id))


def main():
    """Run a demo with simulated workers."""
    setup_logger(level="INFO", use_rich=True)

    store = BoardStore(task_names=["1", "2"])
    logger.info("Starting board server at http://0.0.0.0:8765")
    server = start_server(store=store, host="0.0.0.0", port=8765)

    # Wait for server to start
    time.sleep(2)

    num_tasks = 12
    threads = [
        Thread(target=simulate_worker, args=(store, f"Demo task {i + 1}"), daemon=True)
        for i in range(num_tasks)
    ]
    for thread in threads:
        thread.start()
        time.sleep(0.5)

    for thread in threads:
        thread.join()

    logger.success("All tasks completed!")
    logger.info("Board server is still running. Press Ctrl+C to exit.")

    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        logger.info("Shutting down...")
        server.stop()


if __name__ == "__main__":
    main()
