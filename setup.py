from setuptools import setup, find_packages

with open('README.md', 'r') as f:
    long_description = f.read()

with open('requirements.txt', 'r') as f:
    requirements = [line.strip() for line in f if line.strip() and not line.startswith('#')]

setup(
    name='onnx_depth',
    version='0.1.0',
    description='Single-image monocular depth estimation with Depth Anything v2 and ONNX Runtime',
    long_description=long_description,
    long_description_content_type='text/markdown',
    packages=find_packages(exclude=('*.tests', '*.tests.*')),
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Science/Research',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Topic :: Scientific/Engineering :: Artificial Intelligence',
        'Topic :: Scientific/Engineering :: Image Recognition',
    ],
    python_requires='>=3.9',
    install_requires=requirements,
    extras_require={
        'test': [
            'pytest>=7.0.0',
            'onnx>=1.14.0',
        ],
    },
    entry_points={
        'console_scripts': [
            'depth_estimate=onnx_depth.main:main',
        ],
    },
)
