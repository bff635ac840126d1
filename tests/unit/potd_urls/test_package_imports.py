#!/usr/bin/env python3
"""Tests for package import patterns, including the lazy cli/service exports."""

import os
import subprocess
import sys
import unittest
from pathlib import Path

import potd_urls

SRC_ROOT = str(Path(potd_urls.__file__).resolve().parent.parent)


class TestPackageImports(unittest.TestCase):
    """Tests for package import patterns."""

    def test_version_accessible(self):
        from potd_urls import __version__

        self.assertIsInstance(__version__, str)
        self.assertEqual(__version__, potd_urls.__version__)

    def test_core_imports_work(self):
        from potd_urls import Config, Engine, load_config_file, run_pipeline

        self.assertTrue(Config is not None)
        self.assertTrue(Engine is not None)
        self.assertTrue(load_config_file is not None)
        self.assertTrue(run_pipeline is not None)

    def test_cli_lazy_import(self):
        from potd_urls import cli

        self.assertTrue(hasattr(cli, "main"))
        import potd_urls.cli as cli_direct

        self.assertIs(cli, cli_direct)

    def test_service_lazy_import(self):
        from potd_urls import service

        self.assertTrue(hasattr(service, "run"))
        import potd_urls.service as service_direct

        self.assertIs(service, service_direct)

    def test_attribute_access_in_fresh_interpreter(self):
        """Attribute access on a freshly imported package resolves cli and service."""
        code = (
            "import potd_urls\n"
            "assert hasattr(potd_urls.cli, 'main')\n"
            "assert hasattr(potd_urls.service, 'run_from_config_file')\n"
            "from potd_urls import cli, service\n"
            "assert cli is potd_urls.cli and service is potd_urls.service\n"
        )
        env = dict(os.environ)
        env["PYTHONPATH"] = os.pathsep.join(filter(None, [SRC_ROOT, env.get("PYTHONPATH")]))
        result = subprocess.run(
            [sys.executable, "-c", code], env=env, capture_output=True, text=True, timeout=60
        )
        self.assertEqual(result.returncode, 0, result.stderr)

    def test_unknown_attribute_raises(self):
        with self.assertRaises(AttributeError):
            potd_urls.does_not_exist  # noqa: B018


if __name__ == "__main__":
    unittest.main()
