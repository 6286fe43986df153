"""Setup script for KCD2 Mod Watcher."""

from setuptools import setup, find_packages

setup(
    name="kcd2-mod-watcher",
    version="1.1.0",
    description="Repacks Kingdom Come: Deliverance II mods automatically when the game starts",
    long_description=open("README.md", encoding="utf-8").read(),
    long_description_content_type="text/markdown",
    author="KCD2 Mod Watcher contributors",
    python_requires=">=3.10",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "psutil>=5.9",
        "pystray>=0.19.0",
        "Pillow>=10.0.0",
        "keyboard>=0.13.5",
    ],
    extras_require={
        # wxPython has no wheels for most headless Linux runners; the
        # watcher core and --headless mode work without it.
        "gui": [
            "wxPython>=4.2",
        ],
        "windows": [
            "accessible_output2>=0.17",
        ],
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "kcd2-mod-watcher=modwatch.__main__:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Win32 (MS Windows)",
        "Intended Audience :: End Users/Desktop",
        "Operating System :: Microsoft :: Windows",
        "Operating System :: POSIX :: Linux",
        "Programming Language :: Python :: 3",
        "Topic :: Games/Entertainment",
        "Topic :: Utilities",
    ],
)
