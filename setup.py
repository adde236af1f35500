from setuptools import setup

setup(
    name='rink-shell',
    version='0.1.0',
    description='Interactive shell for a unit-aware calculator: history, tab completion and inputrc settings.',
    author='Your Name',
    py_modules=[
        'inputrc',
        'repl',
        'rink_config',
        'rink_fmt',
        'rink_helper',
        'shell',
        'unit_engine',
    ],
    install_requires=[
        'sympy',
        'prompt_toolkit>=3.0',
        'pydantic>=2',
    ],
    extras_require={
        'test': ['pytest'],
    },
    python_requires='>=3.8',
    entry_points={
        'console_scripts': [
            'rink = shell:main',
        ],
    },
    include_package_data=True,
    zip_safe=False,
)
