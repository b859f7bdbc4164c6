import os, sys
from setuptools import setup, find_namespace_packages
from setuptools.command.build_py import build_py as _build

CLASSIFIERS = [
    'Operating System :: POSIX',
    'Operating System :: MacOS :: MacOS X',
    'Intended Audience :: End Users/Desktop',
    'Programming Language :: Python',
    'Programming Language :: Python :: 3',
    'Topic :: Games/Entertainment :: Role-Playing',
    'Topic :: Internet :: WWW/HTTP'
]

pkgroot = os.path.dirname(os.path.abspath(__file__))

def get_version():
    out = "dev"
    pkgdir = os.environ.get('PACKAGE_DIR', pkgroot)
    versfile = os.path.join(pkgdir, 'VERSION')
    if os.path.exists(versfile):
        with open(versfile) as fd:
            parts = fd.readline().split()
        if len(parts) > 0:
            out = parts[-1]
    else:
        out = "(unknown)"
    return out

def write_version_mod(version):
    versmodf = os.path.join(pkgroot, "python", "ncfoundry", "version.py")
    print("setting version for ncfoundry")
    with open(versmodf, 'w') as fd:
        fd.write('"""')
        fd.write("""
An identification of the package version.  Note that this module file gets
(over-) written by the build process.
""")
        fd.write('"""\n\n')
        fd.write('__version__ = "')
        fd.write(version)
        fd.write('"\n')

class build(_build):

    def run(self):
        write_version_mod(get_version())
        _build.run(self)

setup(name='ncfoundry',
      version=get_version(),
      description="ncfoundry: browse a Nextcloud file space from a virtual tabletop and share files via public links",
      package_dir={'': 'python'},
      packages=find_namespace_packages(where='python', include=['ncfoundry', 'ncfoundry.*']),
      install_requires=[ "requests", "lxml", "PyYAML" ],
      extras_require={ "test": [ "pytest" ] },
      entry_points={ "console_scripts": [ "ncshare=ncfoundry.cli:run" ] },
      cmdclass={'build_py': build},
      classifiers=CLASSIFIERS,
      zip_safe=False
)
