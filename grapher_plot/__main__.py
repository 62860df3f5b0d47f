from grapher_plot.cli import main


raise SystemExit(main())
