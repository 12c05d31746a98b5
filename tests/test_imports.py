"""
Test that all modules can be imported correctly
Run this after installing dependencies to validate the setup
"""
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


def test_server_imports():
    """Test server module imports"""
    print("Testing server imports...")
    from pwgen.config import settings
    from pwgen.models import PasswordRequest, PasswordResponse, MenuMessage
    from pwgen.engine.acceptor import ConnectionAcceptor
    from pwgen.engine.session import PasswordSession
    from pwgen.server import main
    print("✓ Server imports successful")


def test_client_imports():
    """Test client module imports"""
    print("Testing client imports...")
    from pwclient.client import PasswordClient
    from pwclient.main import run_interactive
    print("✓ Client imports successful")


def test_protocol_models():
    """Test wire models are consistent"""
    print("Testing protocol models...")
    from pwgen.engine.codec import message_size
    from pwgen.models import MenuMessage, PasswordRequest, PasswordResponse
    from pwgen.protocol import state_model

    sizes = {cls.__name__: message_size(cls) for cls in (MenuMessage, PasswordRequest, PasswordResponse)}
    print(f"  Message sizes: {sizes}")
    print(f"  States: {state_model['states']}")
    assert state_model["initial_state"] in state_model["states"]
    print("✓ Protocol models successful")


def test_cli_parser():
    """Test server CLI arguments"""
    from pwgen.server import build_parser

    args = build_parser().parse_args(["--port", "9000", "--concurrent"])
    assert args.port == 9000
    assert args.concurrent is True
