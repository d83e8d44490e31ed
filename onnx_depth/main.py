import argparse
import logging
import sys
from typing import Any, Dict, List, Optional

from .inference.estimator import DepthEstimator
from .inference.session import create_session
from .models.variants import ModelConfig, ModelType
from .utils.errors import ConfigurationError, DepthEstimationError
from .utils.helpers import load_config, setup_logging

logger = logging.getLogger(__name__)

DEFAULTS: Dict[str, Any] = {
    'model_type': ModelType.STATIC.value,
    'input': None,
    'output': 'depth.png',
    'resize_to_input': True,
    'threads': 4,
    'use_cuda': False,
    'use_tensorrt': False,
    'use_directml': False,
    'device_id': 0,
    'model_path': None,
    'models_dir': None,
    'preview': None,
    'log_level': 'INFO',
    'log_file': None,
}


def build_parser() -> argparse.ArgumentParser:
    # Every default is None so that only flags given on the command line
    # override values from the config file.
    parser = argparse.ArgumentParser(
        description='Estimate a 16-bit depth map from a single RGB image'
    )
    parser.add_argument('-m', '--model-type', choices=[m.value for m in ModelType], default=None,
                        help='Model variant: static 518x518 (faster) or dynamic (flexible size, higher quality)')
    parser.add_argument('-i', '--input', type=str, default=None,
                        help='Input image path')
    parser.add_argument('-o', '--output', type=str, default=None,
                        help='Output depth map path (16-bit PNG, default: depth.png)')
    parser.add_argument('--resize-to-input', action=argparse.BooleanOptionalAction, default=None,
                        help='Resize output back to the input image dimensions before saving (default: on)')
    parser.add_argument('--threads', type=int, default=None,
                        help='Number of intra-op threads for ONNX Runtime (default: 4)')
    parser.add_argument('--use-cuda', action=argparse.BooleanOptionalAction, default=None,
                        help='Try to register the CUDA execution provider')
    parser.add_argument('--use-tensorrt', action=argparse.BooleanOptionalAction, default=None,
                        help='Try to register the TensorRT execution provider (preferred over CUDA)')
    parser.add_argument('--use-directml', action=argparse.BooleanOptionalAction, default=None,
                        help='Try to register the DirectML execution provider')
    parser.add_argument('--device-id', type=int, default=None,
                        help='GPU index for accelerator providers (default: 0)')
    parser.add_argument('--model-path', type=str, default=None,
                        help='Explicit model file (.onnx, or .pt/.ts TorchScript); skips the model search')
    parser.add_argument('--models-dir', type=str, default=None,
                        help='Extra directory searched for model files')
    parser.add_argument('--preview', type=str, default=None,
                        help='Also save a colour-mapped preview image to this path')
    parser.add_argument('--config', type=str, default=None,
                        help='YAML file with default values for any of these options')
    parser.add_argument('--log-level', type=str, default=None,
                        help='Logging level (default: INFO)')
    parser.add_argument('--log-file', type=str, default=None,
                        help='Also write logs to this file')
    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    return build_parser().parse_args(argv)


def resolve_options(args: argparse.Namespace) -> Dict[str, Any]:
    """
    Merge built-in defaults, the YAML config file and command line flags.

    Later sources win: defaults < config file < explicit flags.
    """
    options = dict(DEFAULTS)

    if args.config:
        file_config = load_config(args.config)
        # accept both `model-type` and `model_type` style keys
        file_config = {str(k).replace('-', '_'): v for k, v in file_config.items()}
        unknown = sorted(set(file_config) - set(DEFAULTS))
        if unknown:
            raise ConfigurationError(
                f"Unknown option(s) in {args.config}: {', '.join(unknown)}"
            )
        options.update(file_config)

    for key, value in vars(args).items():
        if key in DEFAULTS and value is not None:
            options[key] = value

    if not options['input']:
        raise ConfigurationError("No input image given (use --input or the 'input' config key)")
    for key in ('threads', 'device_id'):
        try:
            options[key] = int(options[key])
        except (TypeError, ValueError):
            raise ConfigurationError(f"{key} must be an integer, got {options[key]!r}") from None
    if options['threads'] < 1:
        raise ConfigurationError(f"threads must be >= 1, got {options['threads']}")

    options['model_type'] = ModelType.from_name(options['model_type'])
    return options


def run_depth_estimation(options: Dict[str, Any]):
    """Build the model config and session from resolved options and run the pipeline."""
    model_config = ModelConfig.from_type(
        options['model_type'],
        model_path=options['model_path'],
        models_dir=options['models_dir'],
    )
    logger.info(f"Using {model_config.model_type.value} model: {model_config.path}")

    session = create_session(
        model_config.path,
        threads=int(options['threads']),
        use_cuda=bool(options['use_cuda']),
        use_tensorrt=bool(options['use_tensorrt']),
        use_directml=bool(options['use_directml']),
        device_id=int(options['device_id']),
    )

    with DepthEstimator(session, model_config) as estimator:
        return estimator.run(
            options['input'],
            options['output'],
            resize_to_input=bool(options['resize_to_input']),
            preview_path=options['preview'],
        )


def main(argv: Optional[List[str]] = None) -> int:
    """Command line entry point. Returns the process exit status."""
    args = parse_args(argv)

    try:
        setup_logging(args.log_level or DEFAULTS['log_level'], args.log_file)
        options = resolve_options(args)
        # the config file may carry its own logging settings
        if args.config:
            setup_logging(options['log_level'], options['log_file'])
        run_depth_estimation(options)
    except DepthEstimationError as e:
        logger.error(str(e))
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
