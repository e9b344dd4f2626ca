import argparse
import json
import os
import subprocess
import sys
from dataclasses import asdict

from .api_client import MyMobileAPIClient
from .config import MyMobileConfig, get_default_config_dir
from .exceptions import MyMobileError
from .logging_config import LOG_LEVELS, setup_logging
from .models import BulkMessageRequest, GroupMessageRequest, Message, SendOptions


def write_file(path: str, data: bytes, mode: int = 0o600) -> None:
    with open(path, 'wb') as f:
        f.write(data)
    try:
        os.chmod(path, mode)
    except OSError:
        # Ignore chmod issues on non-POSIX
        pass


def load_config(args: argparse.Namespace) -> MyMobileConfig:
    """Load the config file and apply command line overrides"""
    config = MyMobileConfig(args.config)
    if args.debug:
        config.debug = True
    if config.log_file or (config.log_level and not args.log_level):
        setup_logging(log_level=args.log_level or config.log_level or 'WARNING',
                      log_file=config.log_file)
    return config


def print_send_result(response, args: argparse.Namespace, summary: str) -> None:
    if args.verbose:
        print(json.dumps(asdict(response), indent=2))
    else:
        print(f"{summary} Event ID: {response.event_id}, cost: {response.cost}, "
              f"remaining balance: {response.remaining_balance}")


def cmd_test_connection(args: argparse.Namespace) -> int:
    """Test authentication against the MyMobile API"""
    try:
        config = load_config(args)
        with MyMobileAPIClient.from_config(config) as client:
            print(f"Connection successful! Token valid until {client.token_expiry.isoformat()}")
        return 0
    except (MyMobileError, OSError, ValueError) as e:
        print(f"Connection failed: {e}", file=sys.stderr)
        return 1


def cmd_balance(args: argparse.Namespace) -> int:
    """Print the account balance"""
    try:
        config = load_config(args)
        with MyMobileAPIClient.from_config(config) as client:
            balance = client.get_balance()
        print(f"Balance: {balance}")
        return 0
    except (MyMobileError, OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_send_sms(args: argparse.Namespace) -> int:
    """Send an SMS message to one recipient"""
    try:
        config = load_config(args)
        recipient = args.to or config.to_number
        if not recipient:
            print("Error: no recipient given (use --to or set to_number in config)", file=sys.stderr)
            return 1

        bulk_request = BulkMessageRequest(
            messages=[Message(content=args.message, destination=recipient)],
            send_options=SendOptions(
                sender_id=args.sender_id or config.sender_id,
                test_mode=True if args.test_mode else None,
            ),
        )
        with MyMobileAPIClient.from_config(config) as client:
            response = client.send_bulk_messages(bulk_request)

        print_send_result(response, args, "SMS sent successfully!")
        return 0
    except (MyMobileError, OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_send_group(args: argparse.Namespace) -> int:
    """Send an SMS message to one or more contact groups"""
    try:
        config = load_config(args)
        group_request = GroupMessageRequest(
            message=Message(content=args.message),
            groups=args.group,
            send_options=SendOptions(
                sender_id=args.sender_id or config.sender_id,
                test_mode=True if args.test_mode else None,
            ),
        )
        with MyMobileAPIClient.from_config(config) as client:
            response = client.send_group_messages(group_request)

        print_send_result(response, args, f"Group SMS sent to {', '.join(args.group)}!")
        return 0
    except (MyMobileError, OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_stat(args: argparse.Namespace) -> int:
    """Execute a command and send SMS notification with exit status"""
    try:
        config = load_config(args)
        recipient = args.to or config.to_number
        if not recipient:
            print("Error: no recipient given (use --to or set to_number in config)", file=sys.stderr)
            return 1

        command = ' '.join(args.command)
        if args.verbose:
            print(f"Executing command: {command}")

        try:
            # Use shell=True to support complex commands with pipes, redirects, etc.
            result = subprocess.run(command, shell=True)
            exit_code = result.returncode
            if args.verbose:
                print(f"Command exit code: {exit_code}")
        except OSError as e:
            exit_code = 125  # Standard execution error exit code
            if args.verbose:
                print(f"Command execution failed: {e}")

        hostname = os.uname().nodename
        if exit_code == 0 and args.message_on in ['success', 'both']:
            message = f"Command '{command}' on {hostname} completed successfully"
        elif exit_code != 0 and args.message_on in ['fail', 'both']:
            message = f"Command '{command}' on {hostname} failed with exit code {exit_code}"
        else:
            return exit_code

        bulk_request = BulkMessageRequest(
            messages=[Message(content=message, destination=recipient)],
            send_options=SendOptions(sender_id=config.sender_id),
        )
        with MyMobileAPIClient.from_config(config) as client:
            response = client.send_bulk_messages(bulk_request)

        if args.verbose:
            print(json.dumps(asdict(response), indent=2))
        else:
            print(f"SMS notification sent: {message}")

        # Return the same exit code as the executed command
        return exit_code

    except (MyMobileError, OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_init(args: argparse.Namespace) -> int:
    """Initialize the client config file"""
    config_dir = args.config_dir or get_default_config_dir()
    config_path = os.path.join(config_dir, "config.json")

    print(f"Initializing MyMobile client in: {config_dir}")

    try:
        os.makedirs(config_dir, exist_ok=True)
    except OSError as e:
        print(f"Failed to create config directory: {e}", file=sys.stderr)
        return 1

    if os.path.exists(config_path) and not args.force:
        print(f"Config file already exists: {config_path}")
        print("Use --force to overwrite existing files")
        return 1

    config_data = {
        "client_id": args.client_id,
        "client_secret": args.client_secret,
        "endpoint": args.endpoint,
        "sender_id": args.sender_id,
        "to_number": args.to_number,
    }
    # Remove None values
    config_data = {k: v for k, v in config_data.items() if v is not None}

    try:
        write_file(config_path, json.dumps(config_data, indent=2).encode("utf-8"), 0o600)
    except OSError as e:
        print(f"Failed to create config file: {e}", file=sys.stderr)
        return 1

    print(f"Created config file: {config_path}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="mymobile-cli", description="MyMobile SMS gateway client utilities")
    p.add_argument("--debug", action="store_true", help="Print raw HTTP requests and responses")
    p.add_argument("--log-level", default=None, type=str.upper, choices=LOG_LEVELS, help="Logging level (default: LOG_LEVEL env or config, else WARNING)")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_init = sub.add_parser("init", help="Create the client config file",
                            description="Create the configuration directory and write a config file with the API credentials.")
    p_init.add_argument("--config-dir", help="Config directory (default: XDG_CONFIG_HOME/mymobile or ~/.config/mymobile)")
    p_init.add_argument("--client-id", required=True, help="API client ID")
    p_init.add_argument("--client-secret", required=True, help="API client secret")
    p_init.add_argument("--endpoint", help="API base URL (default: https://rest.mymobileapi.com/v1/)")
    p_init.add_argument("--sender-id", help="Default sender ID")
    p_init.add_argument("--to-number", help="Default recipient phone number")
    p_init.add_argument("--force", action="store_true", help="Overwrite existing files")
    p_init.set_defaults(func=cmd_init)

    p_test = sub.add_parser("test", help="Test authentication", description="Authenticate with the MyMobile API and report the token expiry.")
    p_test.add_argument("--config", default=None, help="Config file path (default: auto-detect from config directory)")
    p_test.set_defaults(func=cmd_test_connection)

    p_balance = sub.add_parser("balance", help="Show the account balance")
    p_balance.add_argument("--config", default=None, help="Config file path (default: auto-detect from config directory)")
    p_balance.set_defaults(func=cmd_balance)

    p_send = sub.add_parser("send", help="Send an SMS message", description="Send an SMS message to a phone number.")
    p_send.add_argument("message", help="Message to send")
    p_send.add_argument("--to", help="Recipient phone number (overrides config)")
    p_send.add_argument("--sender-id", help="Sender ID (overrides config)")
    p_send.add_argument("--test-mode", action="store_true", help="Validate and price the send without delivering it")
    p_send.add_argument("--config", default=None, help="Config file path (default: auto-detect from config directory)")
    p_send.add_argument("--verbose", "-v", action="store_true", help="Verbose output (default: False)")
    p_send.set_defaults(func=cmd_send_sms)

    p_group = sub.add_parser("send-group", help="Send an SMS message to contact groups",
                             description="Send an SMS message to every contact in the given groups.")
    p_group.add_argument("message", help="Message to send")
    p_group.add_argument("--group", action="append", required=True, help="Group name (repeat for several groups)")
    p_group.add_argument("--sender-id", help="Sender ID (overrides config)")
    p_group.add_argument("--test-mode", action="store_true", help="Validate and price the send without delivering it")
    p_group.add_argument("--config", default=None, help="Config file path (default: auto-detect from config directory)")
    p_group.add_argument("--verbose", "-v", action="store_true", help="Verbose output (default: False)")
    p_group.set_defaults(func=cmd_send_group)

    p_stat = sub.add_parser("stat", help="Execute command and send SMS notification with exit status",
                            description="Execute a command and send an SMS notification indicating whether"
                            " the command completed successfully or failed with its exit code.")
    p_stat.add_argument("--to", help="Recipient phone number (overrides config)")
    p_stat.add_argument("--config", default=None, help="Config file path (default: auto-detect from config directory)")
    p_stat.add_argument("--message-on", default="both", choices=["success", "fail", "both"],
                        help="Sends message on 'success', 'fail', or default: 'both'")
    p_stat.add_argument("--verbose", "-v", action="store_true", help="Verbose output (default: False)")
    p_stat.add_argument("command", nargs=argparse.REMAINDER, help="Command to execute")
    p_stat.set_defaults(func=cmd_stat)

    return p


def main(argv=None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(log_level=args.log_level or os.environ.get('LOG_LEVEL', 'WARNING'))
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
