from setuptools import setup

setup(
    name="cpu6502-interpreter",
    version="0.1.0",
    description="Cycle-counted 6502 instruction interpreter",
    python_requires=">=3.8",
    py_modules=["cpu", "cpu_config", "memory", "utils", "main"],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "cpu6502-run=main:main",
        ],
    },
)
