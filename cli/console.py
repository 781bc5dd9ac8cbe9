"""Console UI for quickmath application."""

from datetime import datetime

from core.config import QUIZ_LENGTH
from cli.api_client import QuickMathAPIClient


class ConsoleUI:
    """Console user interface for quickmath application."""

    def __init__(self, client: QuickMathAPIClient, narrator, user: str = None, input_func=input):
        self.client = client
        self.narrator = narrator
        self.user = user
        self.input = input_func

    @staticmethod
    def format_timestamp(timestamp: int) -> str:
        return datetime.fromtimestamp(timestamp / 1000).strftime('%Y-%m-%d %H:%M')

    def choose(self, title: str, options: list[str]) -> str | None:
        """Numbered picker. Returns the chosen option or None for back."""
        print(f'\n{title}')
        for i, option in enumerate(options, 1):
            print(f'  {i}. {option.capitalize()}')
        while True:
            choice = self.input('Choose (blank to go back): ').strip()
            if not choice:
                return None
            if choice.isdigit() and 1 <= int(choice) <= len(options):
                return options[int(choice) - 1]
            print('Invalid choice.')

    def print_problem(self, problem: dict, session: dict, number: int):
        print('\n' + '-' * 40)
        if session['mode'] == 'quiz':
            print(f'Question {number}/{QUIZ_LENGTH}')
        print(f"  {problem['question_text']} = ?")
        print('-' * 40)

    def print_result(self, result: dict):
        print(result['feedback_text'])

    def print_history(self, history: list[dict]):
        """Print finished sessions with their attempts."""
        print('\n' + '=' * 50)
        print(f'HISTORY: {self.client.user_id}')
        print('=' * 50)
        if not history:
            print('No practice sessions yet.')
        for entry in history:
            score = f"  {entry['score']}/{QUIZ_LENGTH}" if entry['mode'] == 'quiz' else ''
            print(f"\n{entry['mode'].capitalize()}: {entry['topic']} ({entry['difficulty']})"
                  f"  {self.format_timestamp(entry['timestamp'])}{score}")
            for attempt in entry['attempts']:
                mark = 'ok' if attempt['is_correct'] else 'x '
                line = f"  [{mark}] {attempt['question_text']} -> {attempt['user_answer']}"
                if not attempt['is_correct']:
                    line += f" (answer: {attempt['correct_answer_display']})"
                print(line)
        print('=' * 50)

    def print_leaderboard(self, scores: list[dict]):
        """Print the leaderboard table."""
        print('\n' + '=' * 60)
        print('LEADERBOARD')
        print('=' * 60)
        if not scores:
            print('No quiz scores yet.')
        else:
            print(f"{'#':<4}{'User':<18}{'Score':<8}{'Topic':<12}{'Level':<8}{'Date'}")
            for rank, s in enumerate(scores, 1):
                print(f"{rank:<4}{s['user'][:17]:<18}{s['score']}/{QUIZ_LENGTH:<6}"
                      f"{s['topic']:<12}{s['difficulty']:<8}{self.format_timestamp(s['timestamp'])}")
        print('=' * 60)

    def run_session(self, topic: str, difficulty: str, mode: str):
        """Run one practice or quiz session until it ends or the user exits."""
        session = self.client.start_session(topic, difficulty, mode)
        session_id = session['session_id']
        problem = session['problem']
        number = 1
        print('Commands: "repeat" to hear the question again, "exit" to stop\n')

        while problem:
            self.print_problem(problem, session, number)
            self.narrator.speak(problem['speakable_text'])

            answer = None
            while answer is None:
                user_input = self.input('==> ')
                command = user_input.strip().lower()
                if command == 'exit':
                    problem = None
                    break
                elif command == 'repeat':
                    self.narrator.speak(problem['speakable_text'])
                else:
                    answer = user_input
            if answer is None:
                break

            result = self.client.submit_answer(session_id, answer)
            self.print_result(result)
            self.narrator.speak(result['feedback_text'])
            problem = result['next_problem']
            number += 1

            if result['finished']:
                print(f"\n*** Quiz finished! Score: {result['score']}/{QUIZ_LENGTH} ***\n")
                self.narrator.speak(result['summary_text'])

        self.client.finish_session(session_id)

    def run(self):
        """Run the main application loop."""
        # Check server connection
        try:
            health = self.client.health_check()
            print(f"Connected to quickmath server ({health['service']})")
        except Exception:
            print(f"Error: Cannot connect to server at {self.client.base_url}")
            print("Make sure the server is running: python run_server.py")
            return

        name = (self.user or '').strip()
        while not name:
            name = self.input('Your name: ').strip()
        self.client.login(name)
        print(f'\nHello, {self.client.user_id}!')

        options = self.client.get_options()
        menu = ['practice', 'quiz', 'history', 'leaderboard', 'exit']
        while True:
            action = self.choose('MENU', menu)
            if action is None or action == 'exit':
                print('Goodbye!')
                return

            try:
                if action == 'history':
                    self.print_history(self.client.get_history()['history'])
                elif action == 'leaderboard':
                    sort = self.choose('SORT BY', ['score', 'user', 'timestamp'])
                    if sort is None:
                        continue
                    direction = self.choose('ORDER', ['descending', 'ascending'])
                    if direction is None:
                        continue
                    self.print_leaderboard(self.client.get_leaderboard(sort, direction)['scores'])
                else:
                    topic = self.choose('TOPIC', options['topics'])
                    if topic is None:
                        continue
                    difficulty = self.choose('DIFFICULTY', options['difficulties'])
                    if difficulty is None:
                        continue
                    self.run_session(topic, difficulty, action)
            except Exception as e:
                print(f"Error: {e}")
