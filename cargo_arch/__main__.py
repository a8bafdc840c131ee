from cargo_arch.cli import main

raise SystemExit(main())
