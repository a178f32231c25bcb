#!/usr/bin/env python3
"""
Setup script for code-saver
Minimal installation with smart defaults
"""

import os
import sys
from pathlib import Path
from setuptools import setup, find_packages

# Read version from package
version = "0.1.0"

# Minimal dependencies - just what we absolutely need
install_requires = [
    "pexpect>=4.8.0",  # Spawning the host for save round trips
    "pyjson5>=1.6.9",
    "fastjsonschema>=2.20",
    "portalocker>=2.8",
]

# Optional dependencies for enhanced features
extras_require = {
    "watch": ["watchdog>=2.1.0"],  # For following a transcript as it grows
    "dev": [
        "pytest>=7.0.0",
        "watchdog>=2.1.0",
        "black>=22.0.0",
        "mypy>=0.950",
    ],
}

setup(
    name="code-saver",
    version=version,
    description="Save code blocks from chat transcripts straight into your projects",
    long_description=open("README.md").read() if Path("README.md").exists() else "",
    long_description_content_type="text/markdown",
    author="code-saver contributors",
    python_requires=">=3.9",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=install_requires,
    extras_require=extras_require,
    entry_points={
        "console_scripts": [
            "code-saver=codesaver.cli:main",
            "ccsave=codesaver.cli:main",  # Short alias
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development",
        "Topic :: Text Processing :: Markup :: HTML",
    ],
)

def post_install():
    """Run post-installation setup"""
    # Create directories with proper permissions
    base_dir = Path(os.environ.get("CODE_SAVER_HOME", Path.home() / ".code-saver")).expanduser()
    dirs_to_create = [
        base_dir,
        base_dir / "logs",
    ]

    for dir_path in dirs_to_create:
        dir_path.mkdir(parents=True, exist_ok=True)
        # Set user-only permissions
        os.chmod(dir_path, 0o700)

    # Create default config if it doesn't exist
    config_file = base_dir / "config.json"
    if not config_file.exists():
        import json
        default_config = {
            "log_level": "INFO",
            "context_limit": 2000,
            "host_timeout": 10,
        }
        config_file.write_text(json.dumps(default_config, indent=2))
        os.chmod(config_file, 0o600)

    print(f"✓ Created configuration directory at {base_dir}")
    print("✓ Installation complete!")
    print("\nQuick start:")
    print("  code-saver dest add myproject ~/code/myproject")
    print("  ccsave scan chat.html")

# Run post-install if this is being run directly
if __name__ == "__main__" and "install" in sys.argv:
    from setuptools.command.install import install

    class PostInstallCommand(install):
        def run(self):
            install.run(self)
            post_install()

    setup(cmdclass={"install": PostInstallCommand})
