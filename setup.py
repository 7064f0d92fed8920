# Copyright DataStax, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import re
from os import path

from setuptools import find_packages, setup

this_directory = path.abspath(path.dirname(__file__))
with open(path.join(this_directory, "README.MD"), encoding="utf-8") as f:
    long_description = f.read()

# the package is not importable before its requirements are installed
with open(
    path.join(this_directory, "scrollstream", "__init__.py"), encoding="utf-8"
) as f:
    version = re.search(r'^__version__: str = "([^"]+)"', f.read(), re.M).group(1)


def _read_requirements(file_name):
    with open(path.join(this_directory, file_name), encoding="utf-8") as f:
        return [
            req_line.strip()
            for req_line in f.readlines()
            if req_line.strip() != ""
            if req_line.strip()[0] != "#"
            if "-e ." not in req_line
        ]


install_requires = _read_requirements("requirements.txt")
test_requires = _read_requirements("requirements-test.txt")

setup(
    name="scrollstream",
    packages=find_packages(include=["scrollstream", "scrollstream.*"]),
    package_data={"scrollstream": ["py.typed"]},
    version=version,
    license="Apache license 2.0",
    description="Lazy, skip-ahead streaming over scroll-cursor search backends",
    long_description=long_description,
    long_description_content_type="text/markdown",
    keywords=["scroll", "cursor", "search", "pagination"],
    python_requires=">=3.8",
    install_requires=install_requires,
    extras_require={"test": test_requires},
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: Apache Software License",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
