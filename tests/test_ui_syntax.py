import pytest
import os

APP_PATH = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'app.py'))


def test_app_syntax():
    """
    Test that the app file compiles without syntax errors.
    """
    try:
        # compile() will raise SyntaxError if the file is invalid
        with open(APP_PATH, 'r') as f:
            source = f.read()
        compile(source, 'app.py', 'exec')
    except SyntaxError as e:
        pytest.fail(f"Syntax Error in app.py: {e}")
