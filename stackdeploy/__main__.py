"""Allow `python -m stackdeploy`."""

from stackdeploy.main import main

main()
