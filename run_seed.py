# /run_seed.py

import argparse
from dotenv import load_dotenv
load_dotenv()

from moviegraph.config import settings
from moviegraph.database import create_store
from moviegraph.logger import get_logger
from moviegraph.seed import load_seed

logger = get_logger(__name__)

def main(argv=None):
    """
    Loads the sample movie graph into the configured graph store.
    """
    parser = argparse.ArgumentParser(description="Seed the movie graph.")
    parser.add_argument("--file", default=settings.SEED_FILE, help="Seed graph JSON file.")
    parser.add_argument("--backend", default=settings.GRAPH_BACKEND, choices=["neo4j", "memory"])
    args = parser.parse_args(argv)

    graph = load_seed(args.file)
    store = create_store(args.backend)
    try:
        store.write_graph(graph)
        logger.info("Seeding complete", extra={"file": args.file, "backend": args.backend})
    finally:
        store.close()


if __name__ == '__main__':
    main()
