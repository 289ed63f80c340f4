from filewatcher.watcher.fw_watcher import main


if __name__ == "__main__":
    raise SystemExit(main())
