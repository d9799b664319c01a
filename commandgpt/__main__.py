# commandgpt/__main__.py
"""
Entry point for running CommandGPT as a module.
"""
from commandgpt.cli.main import app

if __name__ == "__main__":
    app(prog_name="commandgpt")
