import os
import unittest
from io import StringIO
from unittest.mock import MagicMock, patch

# This import triggers the sub-command registration via decorators in cli.py
from q_assistant import cli
from q_assistant.config import PLACEHOLDER_API_KEY, Config, OpenRouterConfig
from q_assistant.exceptions import CommandFailedError, ProviderError
from q_assistant.models import CommandSuggestion, SystemContext


def _valid_config():
    config = Config()
    config.ai.openrouter = OpenRouterConfig(api_key="sk-or-v1-real")
    return config


@patch("argcomplete.autocomplete")
class TestQueryCommand(unittest.TestCase):
    """Tests for `q <query>`."""

    def setUp(self):
        self.config = _valid_config()
        self.context = SystemContext(os="linux", shell="bash", current_dir="/tmp")
        self.suggestion = CommandSuggestion("ls -la", "lists files", None)

        patchers = {
            "load": patch("q_assistant.cli.Config.load", return_value=self.config),
            "gather": patch("q_assistant.cli.SystemContext.gather", return_value=self.context),
            "get_provider": patch("q_assistant.cli.get_provider"),
            "Executor": patch("q_assistant.cli.Executor"),
            "stdout": patch("sys.stdout", new_callable=StringIO),
            "stderr": patch("sys.stderr", new_callable=StringIO),
        }
        self.mocks = {}
        for name, patcher in patchers.items():
            self.mocks[name] = patcher.start()
            self.addCleanup(patcher.stop)

        self.provider = self.mocks["get_provider"].return_value
        self.provider.generate_command.return_value = self.suggestion
        self.executor = self.mocks["Executor"].return_value
        self.executor.handle_suggestion.return_value = 0

    def test_query_words_are_joined(self, mock_autocomplete):
        """Verify `q list all files` asks the provider for the joined query."""
        cli.run_cli(["list", "all", "files"])

        self.mocks["gather"].assert_called_once_with(None)
        self.mocks["get_provider"].assert_called_once_with("openrouter", self.config)
        self.provider.generate_command.assert_called_once_with("list all files", self.context)
        self.executor.handle_suggestion.assert_called_once_with(self.suggestion)
        self.assertIn("Thinking...", self.mocks["stdout"].getvalue())

    def test_hyphenated_query_words(self, mock_autocomplete):
        cli.run_cli(["find", "files", "-name", "*.py"])

        query = self.provider.generate_command.call_args.args[0]
        self.assertEqual(query, "find files -name *.py")

    def test_executor_settings_come_from_config(self, mock_autocomplete):
        self.config.execution.show_explanation = False
        self.config.execution.copy_to_clipboard = True
        self.config.context.shell = "zsh"

        cli.run_cli(["list", "files"])

        self.mocks["Executor"].assert_called_once_with(False, False, True)
        self.mocks["gather"].assert_called_once_with("zsh")

    def test_yes_flag_enables_auto_confirm(self, mock_autocomplete):
        cli.run_cli(["-y", "list", "files"])

        self.assertTrue(self.mocks["Executor"].call_args.args[0])
        self.provider.generate_command.assert_called_once_with("list files", self.context)

    def test_empty_query_prints_help(self, mock_autocomplete):
        cli.run_cli([])

        self.assertIn("usage: q", self.mocks["stdout"].getvalue())
        self.mocks["load"].assert_not_called()

    @patch("q_assistant.cli.Config.config_path", return_value="/home/me/.config/q/config.json")
    def test_config_path_flag(self, mock_config_path, mock_autocomplete):
        cli.run_cli(["--config-path"])

        self.assertEqual(self.mocks["stdout"].getvalue(), "/home/me/.config/q/config.json\n")
        self.mocks["load"].assert_not_called()

    @patch("q_assistant.config.Config.config_path", return_value="/cfg/config.json")
    def test_invalid_config_exits_with_error(self, mock_config_path, mock_autocomplete):
        self.config.ai.openrouter.api_key = PLACEHOLDER_API_KEY

        with self.assertRaises(SystemExit) as cm:
            cli.run_cli(["list", "files"])

        self.assertEqual(cm.exception.code, 1)
        stderr = self.mocks["stderr"].getvalue()
        self.assertIn("Configuration error", stderr)
        self.assertIn("q --config-path", stderr)
        self.provider.generate_command.assert_not_called()

    def test_provider_error_exits_with_one(self, mock_autocomplete):
        self.provider.generate_command.side_effect = ProviderError("No response from AI")

        with self.assertRaises(SystemExit) as cm:
            cli.run_cli(["list", "files"])

        self.assertEqual(cm.exception.code, 1)
        self.assertIn("Error: No response from AI", self.mocks["stderr"].getvalue())
        self.executor.handle_suggestion.assert_not_called()

    def test_failed_command_exit_code_is_passed_through(self, mock_autocomplete):
        self.executor.handle_suggestion.side_effect = CommandFailedError(3)

        with self.assertRaises(SystemExit) as cm:
            cli.run_cli(["list", "files"])

        self.assertEqual(cm.exception.code, 3)
        self.assertIn("Command failed with exit code: 3", self.mocks["stderr"].getvalue())

    def test_declined_command_exits_normally(self, mock_autocomplete):
        self.executor.handle_suggestion.return_value = 0

        cli.run_cli(["delete", "everything"])

    def test_verbose_flag_enables_debug_logging(self, mock_autocomplete):
        cli.run_cli(["-v", "list", "files"])

        self.assertTrue(cli.logging.getLogger("q").isEnabledFor(cli.logging.DEBUG))
        cli.run_cli(["list", "files"])
        self.assertFalse(cli.logging.getLogger("q").isEnabledFor(cli.logging.DEBUG))


@patch("argcomplete.autocomplete")
class TestConfigCommand(unittest.TestCase):
    """Tests for `q config`."""

    @patch("sys.stdout", new_callable=StringIO)
    @patch("q_assistant.cli.Prompt.ask", return_value="  sk-or-v1-new  ")
    @patch("q_assistant.cli.Config.load")
    def test_stores_api_key(self, mock_load, mock_ask, mock_stdout, mock_autocomplete):
        config = MagicMock(spec=Config)
        config.ai = Config().ai
        mock_load.return_value = config

        cli.run_cli(["config"])

        self.assertEqual(config.ai.openrouter.api_key, "sk-or-v1-new")
        self.assertEqual(config.ai.openrouter.model, "anthropic/claude-4.5-sonnet")
        config.save.assert_called_once()
        self.assertIn("Configuration saved successfully!", mock_stdout.getvalue())

    @patch("sys.stdout", new_callable=StringIO)
    @patch("q_assistant.cli.Prompt.ask", return_value="sk-or-v1-new")
    @patch("q_assistant.cli.Config.load")
    def test_keeps_existing_model(self, mock_load, mock_ask, mock_stdout, mock_autocomplete):
        config = _valid_config()
        config.ai.openrouter.model = "openai/gpt-4o"
        mock_load.return_value = config

        with patch.object(Config, "save") as mock_save:
            cli.run_cli(["config"])

        mock_save.assert_called_once()
        self.assertEqual(config.ai.openrouter.api_key, "sk-or-v1-new")
        self.assertEqual(config.ai.openrouter.model, "openai/gpt-4o")

    @patch("sys.stderr", new_callable=StringIO)
    @patch("sys.stdout", new_callable=StringIO)
    @patch("q_assistant.cli.Prompt.ask", return_value="   ")
    @patch("q_assistant.cli.Config.load", return_value=Config())
    def test_empty_api_key(self, mock_load, mock_ask, mock_stdout, mock_stderr, mock_autocomplete):
        with self.assertRaises(SystemExit) as cm:
            cli.run_cli(["config"])

        self.assertEqual(cm.exception.code, 1)
        self.assertIn("API Key cannot be empty.", mock_stderr.getvalue())

    @patch("sys.stdout", new_callable=StringIO)
    @patch("q_assistant.cli.subprocess.run")
    @patch("os.path.exists", return_value=True)
    @patch("q_assistant.cli.Config.config_path", return_value="/cfg/config.json")
    def test_edit_opens_editor(self, mock_path, mock_exists, mock_run, mock_stdout, mock_autocomplete):
        with patch.dict(os.environ, {"EDITOR": "my-editor"}):
            cli.run_cli(["config", "--edit"])

        mock_run.assert_called_once_with(["my-editor", "/cfg/config.json"])

    @patch("sys.stderr", new_callable=StringIO)
    @patch("sys.stdout", new_callable=StringIO)
    @patch("q_assistant.cli.subprocess.run", side_effect=FileNotFoundError)
    @patch("os.path.exists", return_value=True)
    @patch("q_assistant.cli.Config.config_path", return_value="/cfg/config.json")
    def test_edit_editor_not_found(self, mock_path, mock_exists, mock_run, mock_stdout, mock_stderr, mock_autocomplete):
        """Verify the application exits if the specified editor is not found."""
        with patch.dict(os.environ, {"EDITOR": "bad-editor"}):
            with self.assertRaises(SystemExit) as cm:
                cli.run_cli(["config", "-e"])

        self.assertEqual(cm.exception.code, 1)
        self.assertIn("Could not find editor", mock_stderr.getvalue())


class TestCommandRegistration(unittest.TestCase):
    """Tests for the @command decorator."""

    def test_handler_name_must_start_with_handle(self):
        with self.assertRaises(ValueError):
            @cli.command([])
            def config_thing(args):
                """Docstring."""

    def test_handler_needs_docstring(self):
        with self.assertRaises(ValueError):
            @cli.command([])
            def handle_nodoc(args):
                pass

    @patch("sys.stderr", new_callable=StringIO)
    @patch("argcomplete.autocomplete")
    def test_unknown_option_for_subcommand(self, mock_autocomplete, mock_stderr):
        with self.assertRaises(SystemExit) as cm:
            cli.run_cli(["config", "--fly"])

        self.assertEqual(cm.exception.code, 2)
        self.assertIn("unrecognized arguments: --fly", mock_stderr.getvalue())
