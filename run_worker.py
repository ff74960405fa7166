"""
Availability Worker Runner
Run this as a separate process: python run_worker.py
"""

import logging
import sys

from arq import run_worker

from gapp_directory.worker import WorkerSettings

# Worker logs go to stdout for the process supervisor
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger(__name__)

if __name__ == "__main__":
    logger.info("🚀 Starting availability worker...")
    try:
        run_worker(WorkerSettings)
    except KeyboardInterrupt:
        logger.info("👋 Availability worker stopped by user")
    except Exception as e:
        logger.error(f"❌ Availability worker crashed: {e}")
        sys.exit(1)
