"""
Command line text generator driven by a character-level Markov model.

"""

import argparse
import logging
import sys
from typing import Dict, Optional

import yaml
from tqdm import tqdm

from markov_model import MarkovModel, NO_CHARACTER

DEFAULT_CONFIG_PATH = 'config.yaml'

# Default settings
CONFIG = {
    'order': 3,
    'seed': 42,
    'length': 500,
    'show_progress': True,
    'log_level': 'INFO',
}

LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR')


def validate_config(config: Dict) -> Dict:
    """Check that every setting is present, of the right type and in range."""
    schema = {
        'order': (int, lambda x: x > 0),
        'seed': (int, lambda x: True),
        'length': (int, lambda x: x >= 0),
        'show_progress': (bool, lambda x: True),
        'log_level': (str, lambda x: x.upper() in LOG_LEVELS),
    }
    for key, (type_, check) in schema.items():
        if key not in config:
            raise ValueError(f"Missing config key: {key}")
        value = config[key]
        # bool is an int subclass, so reject it for numeric settings
        if not isinstance(value, type_) or (type_ is int and isinstance(value, bool)):
            raise ValueError(f"Wrong type for {key}: expected {type_.__name__}, got {type(value).__name__}")
        if not check(value):
            raise ValueError(f"Invalid value for {key}: {value}")
    return config


def load_config(path: str = DEFAULT_CONFIG_PATH) -> Dict:
    """Load settings from a YAML file on top of the defaults."""
    config = dict(CONFIG)
    try:
        with open(path, 'r') as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        logging.warning(f"Config file {path} not found, using defaults")
        return validate_config(config)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}")

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    config.update(data)
    return validate_config(config)


def train_model(text, order: int, seed: Optional[int] = None) -> MarkovModel:
    """Build a model of the given order from ``text``."""
    model = MarkovModel(order, seed)
    model.ingest(text)

    stats = model.get_stats()
    logging.info(f"Trained order-{order} model: {stats['contexts']} contexts, "
                 f"{stats['total_transitions']} transitions")
    return model


def default_prompt(model: MarkovModel, text) -> str:
    """Use the opening k-gram of the training text as the starting state."""
    text = MarkovModel.clean_text(text)
    if len(text) < model.order:
        raise ValueError(f"Training text is shorter than the model order ({model.order})")
    return text[:model.order]


def generate_text(model: MarkovModel, prompt: str, length: int,
                  show_progress: bool = False) -> str:
    """Extend ``prompt`` by up to ``length`` sampled characters."""
    if length < 0:
        raise ValueError("length must not be negative")
    if len(prompt) < model.order:
        raise ValueError(f"Prompt must be at least {model.order} characters long")

    result = list(prompt)
    for _ in tqdm(range(length), desc="Generating", disable=not show_progress):
        kgram = ''.join(result[-model.order:])
        next_char = model.sample_next(kgram)
        if next_char == NO_CHARACTER:
            logging.debug(f"No continuation for {kgram!r}, stopping after {len(result)} characters")
            break
        result.append(next_char)

    return ''.join(result)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Generate text with a character-level Markov model.")
    parser.add_argument('input', help='Training text file (read as Latin-1)')
    parser.add_argument('--config', default=DEFAULT_CONFIG_PATH, help='YAML configuration file')
    parser.add_argument('--order', type=int, help='k-gram length')
    parser.add_argument('--seed', type=int, help='Random seed')
    parser.add_argument('--length', type=int, help='Number of characters to generate')
    parser.add_argument('--prompt', help='Starting text (defaults to the start of the input)')
    parser.add_argument('--no-progress', action='store_true', help='Hide the progress bar')
    parser.add_argument('--stats', action='store_true', help='Print model statistics instead of generating')
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(level=logging.INFO,
                        format='%(asctime)s - %(levelname)s - %(message)s')

    try:
        config = load_config(args.config)
        for key in ('order', 'seed', 'length'):
            value = getattr(args, key)
            if value is not None:
                config[key] = value
        if args.no_progress:
            config['show_progress'] = False
        config = validate_config(config)

        logging.getLogger().setLevel(config['log_level'].upper())

        # Raw bytes keep every code, including carriage returns
        with open(args.input, 'rb') as f:
            text = f.read()

        model = train_model(text, config['order'], config['seed'])

        if args.stats:
            for key, value in model.get_stats().items():
                print(f"{key}: {value}")
            return 0

        prompt = args.prompt if args.prompt is not None else default_prompt(model, text)
        print(generate_text(model, prompt, config['length'], config['show_progress']))
    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
