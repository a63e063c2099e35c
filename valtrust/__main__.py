from valtrust.cli import main

raise SystemExit(main())
