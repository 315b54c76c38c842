"""Allow ``python -m tiercache``."""

from tiercache.app import main

main()
