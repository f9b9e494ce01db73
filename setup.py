from setuptools import setup, find_packages

setup(
    name='particle-life',
    version='0.2.0',
    description='Particle-life force simulation core: behavior matrix, three-zone force law, tick engine',
    packages=find_packages(exclude=['tests']),
    python_requires='>=3.10',
    install_requires=[
        'numpy>=1.24',
        'numba>=0.58',
    ],
    extras_require={
        'test': ['pytest>=7.0'],
    },
    entry_points={
        'console_scripts': [
            'particle-life=particle_life.__main__:main',
        ],
    },
    zip_safe=False,
)
