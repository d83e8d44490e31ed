"""Tests for provider selection, model discovery and command line handling."""

import os
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest import mock

import numpy as np
import torch
import torch.nn as nn
from PIL import Image

from onnx_depth import main as cli
from onnx_depth.config.device import CPU_PROVIDER, get_device, provider_names, select_providers
from onnx_depth.config.paths import MODELS_DIR_ENV, model_search_dirs
from onnx_depth.data.transforms import AspectFit, StaticSquash
from onnx_depth.models.variants import ModelConfig, ModelType, find_model_path, model_filename
from onnx_depth.utils.errors import ConfigurationError, ModelNotFoundError, UnknownModelVariant
from onnx_depth.utils.helpers import load_config

ALL_PROVIDERS = [
    "TensorrtExecutionProvider",
    "CUDAExecutionProvider",
    "DmlExecutionProvider",
    CPU_PROVIDER,
]


class TestProviderPolicy(unittest.TestCase):

    def test_cpu_only_by_default(self):
        self.assertEqual(select_providers(ALL_PROVIDERS), [CPU_PROVIDER])

    def test_tensorrt_preferred_over_cuda(self):
        providers = select_providers(ALL_PROVIDERS, use_cuda=True, use_tensorrt=True, device_id=1)
        self.assertEqual(
            provider_names(providers),
            ["TensorrtExecutionProvider", "CUDAExecutionProvider", CPU_PROVIDER],
        )
        self.assertEqual(providers[0][1], {"device_id": "1"})

    def test_unavailable_provider_is_skipped(self):
        with self.assertLogs("onnx_depth.config.device", level="WARNING") as logs:
            providers = select_providers([CPU_PROVIDER], use_cuda=True, use_directml=True)
        self.assertEqual(providers, [CPU_PROVIDER])
        self.assertEqual(len(logs.records), 2)

    def test_cpu_always_last(self):
        providers = select_providers(["CUDAExecutionProvider"], use_cuda=True)
        self.assertEqual(provider_names(providers)[-1], CPU_PROVIDER)

    def test_torch_device(self):
        self.assertEqual(get_device(prefer_cpu=True), torch.device("cpu"))


class TestModelVariants(unittest.TestCase):

    def setUp(self):
        self.tmp_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.tmp_dir)

    def test_variant_policies(self):
        path = Path(self.tmp_dir) / model_filename("static")
        path.touch()
        config = ModelConfig.from_type("static", model_path=str(path))
        self.assertEqual(config.policy, StaticSquash(518))
        self.assertTrue(config.static_resize)
        self.assertEqual(config.target_size, 518)

        config = ModelConfig.from_type(ModelType.DYNAMIC, model_path=str(path))
        self.assertEqual(config.policy, AspectFit(518, 14))
        self.assertFalse(config.static_resize)

    def test_from_name(self):
        self.assertIs(ModelType.from_name("Dynamic"), ModelType.DYNAMIC)
        with self.assertRaises(UnknownModelVariant) as ctx:
            ModelType.from_name("huge")
        self.assertIsInstance(ctx.exception, ValueError)
        self.assertIn("static", str(ctx.exception))

    def test_models_dir_search(self):
        filename = model_filename(ModelType.DYNAMIC)
        (Path(self.tmp_dir) / filename).touch()
        config = ModelConfig.from_type("dynamic", models_dir=self.tmp_dir)
        self.assertEqual(config.path, Path(self.tmp_dir) / filename)

    def test_env_var_search(self):
        (Path(self.tmp_dir) / "custom.onnx").touch()
        with mock.patch.dict(os.environ, {MODELS_DIR_ENV: self.tmp_dir}):
            self.assertEqual(model_search_dirs()[0], Path(self.tmp_dir))
            self.assertEqual(find_model_path("custom.onnx"), Path(self.tmp_dir) / "custom.onnx")

    def test_explicit_dir_comes_first(self):
        other = os.path.join(self.tmp_dir, "env")
        with mock.patch.dict(os.environ, {MODELS_DIR_ENV: other}):
            dirs = model_search_dirs(self.tmp_dir)
        self.assertEqual(dirs[:2], [Path(self.tmp_dir), Path(other)])
        self.assertEqual(dirs[-1], Path("models"))

    def test_missing_model_lists_locations(self):
        with self.assertRaises(ModelNotFoundError) as ctx:
            find_model_path("does_not_exist.onnx", self.tmp_dir)
        self.assertIsInstance(ctx.exception, FileNotFoundError)
        self.assertIn(str(Path(self.tmp_dir) / "does_not_exist.onnx"), ctx.exception.searched)
        self.assertIn("does_not_exist.onnx", str(ctx.exception))

    def test_missing_explicit_path(self):
        with self.assertRaises(ModelNotFoundError):
            ModelConfig.from_type("static", model_path=os.path.join(self.tmp_dir, "x.onnx"))


class RedChannelDepth(nn.Module):
    def forward(self, x):
        return x[:, 0]


class TestCommandLine(unittest.TestCase):

    def setUp(self):
        self.tmp_dir = tempfile.mkdtemp()
        self.input_path = os.path.join(self.tmp_dir, "input.png")
        ramp = np.tile(np.arange(60, dtype=np.uint8) * 4, (45, 1))
        Image.fromarray(np.stack([ramp] * 3, axis=-1)).save(self.input_path)
        self.model_path = os.path.join(self.tmp_dir, "red.pt")
        torch.jit.script(RedChannelDepth()).save(self.model_path)

    def tearDown(self):
        shutil.rmtree(self.tmp_dir)

    def write_config(self, text):
        path = os.path.join(self.tmp_dir, "config.yaml")
        with open(path, "w") as f:
            f.write(text)
        return path

    def test_defaults(self):
        options = cli.resolve_options(cli.parse_args(["-i", "a.png"]))
        self.assertIs(options["model_type"], ModelType.STATIC)
        self.assertEqual(options["output"], "depth.png")
        self.assertTrue(options["resize_to_input"])
        self.assertEqual(options["threads"], 4)

    def test_config_file_and_override(self):
        config = self.write_config(
            "model-type: dynamic\ninput: from_config.png\nthreads: 2\nresize_to_input: false\n"
        )
        options = cli.resolve_options(cli.parse_args(["--config", config, "--threads", "8"]))
        self.assertIs(options["model_type"], ModelType.DYNAMIC)
        self.assertEqual(options["input"], "from_config.png")
        self.assertEqual(options["threads"], 8)
        self.assertFalse(options["resize_to_input"])

        options = cli.resolve_options(cli.parse_args(["--config", config, "--resize-to-input"]))
        self.assertTrue(options["resize_to_input"])

    def test_accelerator_flags_override_config(self):
        config = self.write_config("input: a.png\nuse_cuda: true\nuse_directml: true\n")
        options = cli.resolve_options(cli.parse_args(["--config", config]))
        self.assertTrue(options["use_cuda"])
        self.assertTrue(options["use_directml"])

        options = cli.resolve_options(
            cli.parse_args(["--config", config, "--no-use-cuda", "--use-tensorrt"])
        )
        self.assertFalse(options["use_cuda"])
        self.assertTrue(options["use_tensorrt"])
        self.assertTrue(options["use_directml"])

    def test_unknown_config_key(self):
        config = self.write_config("input: a.png\nbatch_size: 8\n")
        with self.assertRaises(ConfigurationError):
            cli.resolve_options(cli.parse_args(["--config", config]))

    def test_invalid_yaml(self):
        config = self.write_config("input: [unclosed\n")
        with self.assertRaises(ConfigurationError):
            load_config(config)

    def test_missing_input(self):
        with self.assertRaises(ConfigurationError):
            cli.resolve_options(cli.parse_args([]))

    def test_main_end_to_end(self):
        output = os.path.join(self.tmp_dir, "depth.png")
        status = cli.main([
            "-i", self.input_path, "-o", output,
            "--model-type", "dynamic", "--model-path", self.model_path,
        ])
        self.assertEqual(status, 0)
        with Image.open(output) as img:
            self.assertEqual(img.size, (60, 45))

    def test_main_without_resize(self):
        output = os.path.join(self.tmp_dir, "depth.png")
        status = cli.main([
            "-i", self.input_path, "-o", output, "--no-resize-to-input",
            "--model-type", "dynamic", "--model-path", self.model_path,
        ])
        self.assertEqual(status, 0)
        with Image.open(output) as img:
            # 60x45 fits 518 as 518x388.5 -> 518x378
            self.assertEqual(img.size, (518, 378))

    def test_main_reports_missing_model(self):
        output = os.path.join(self.tmp_dir, "depth.png")
        status = cli.main([
            "-i", self.input_path, "-o", output,
            "--model-path", os.path.join(self.tmp_dir, "missing.onnx"),
        ])
        self.assertEqual(status, 1)
        self.assertFalse(os.path.exists(output))

    def test_main_reports_missing_input(self):
        status = cli.main([
            "-i", os.path.join(self.tmp_dir, "nope.png"),
            "-o", os.path.join(self.tmp_dir, "depth.png"),
            "--model-path", self.model_path,
        ])
        self.assertEqual(status, 1)


if __name__ == '__main__':
    unittest.main(verbosity=2)
