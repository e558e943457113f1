from pgf_runtime.cli import main

raise SystemExit(main())
