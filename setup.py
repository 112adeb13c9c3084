from setuptools import setup, find_namespace_packages

setup(
    name='atmfjstc-asl-reader',
    version='1.0.0',

    author_email='atmfjstc@protonmail.com',

    package_dir={'': 'src'},
    packages=find_namespace_packages(where='src'),

    install_requires=[
        'atmfjstc-error-utils>=1, <2',
        'numpy>=1.17',
        'Pillow>=8',
    ],

    zip_safe=True,

    description="Decoder for ASL (layer style) files and the patterns embedded in them",

    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Typing :: Typed",
    ],
    python_requires='>=3.7',
)
