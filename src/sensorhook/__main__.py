from sensorhook.cli import main

raise SystemExit(main())
