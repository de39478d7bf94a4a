# logger_setup.py

import logging
import os
import json

LOGGER_NAME = "double_pendulum"

def setup_logging(config_path='config.json'):
    """
    Configures the "double_pendulum" logger used by every simulation module.

    The run's `logging` section picks the level and format. Output goes to the
    console and to runs/<run_id>/simulation.log, so frame-rate and energy
    drift reports from one run stay together. The logger does not propagate
    to the root logger, which keeps Numba's compiler chatter and pygame's
    start-up banner out of the simulation log.

    Data Contract:
    - Inputs: config_path (str) - Path to the run configuration (config.json).
    - Outputs: logging.Logger - The configured "double_pendulum" logger.
    - Side Effects:
        - Replaces (and closes) any handlers left by an earlier call.
        - Creates runs/<run_id>/ if it does not exist.
    - Invariants: Assumes the config file contains 'run_id' and a 'logging' dictionary
      with 'level' and 'format'.
    """
    with open(config_path, 'r') as f:
        config = json.load(f)

    run_id = config['run_id']
    log_config = config['logging']

    # --- Get a dedicated logger for the application ---
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(log_config['level'])

    # --- Prevent logs from propagating to the root logger ---
    logger.propagate = False

    # --- Create directories for logs ---
    log_dir = os.path.join('runs', run_id)
    os.makedirs(log_dir, exist_ok=True)
    log_file = os.path.join(log_dir, 'simulation.log')

    # --- Create formatter and handlers ---
    formatter = logging.Formatter(log_config['format'])

    file_handler = logging.FileHandler(log_file)
    file_handler.setFormatter(formatter)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)

    # --- Add handlers to the logger ---
    # Clear existing handlers to avoid duplication if this function is called again
    if logger.hasHandlers():
        for handler in list(logger.handlers):
            handler.close()
        logger.handlers.clear()
    logger.addHandler(file_handler)
    logger.addHandler(stream_handler)

    logger.info(f"Logging initialized. Run ID: {run_id}. Log file: {log_file}")
    return logger
