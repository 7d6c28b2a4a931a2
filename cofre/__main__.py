from cofre.bot.runner import run

if __name__ == "__main__":
    run()
