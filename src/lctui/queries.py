"""GraphQL documents sent to leetcode.com."""

PROBLEM_LIST_QUERY = """
query problemsetQuestionList($categorySlug: String, $limit: Int, $skip: Int, $filters: QuestionListFilterInput) {
  problemsetQuestionList: questionList(
    categorySlug: $categorySlug
    limit: $limit
    skip: $skip
    filters: $filters
  ) {
    total: totalNum
    questions: data {
      questionId
      frontendQuestionId: questionFrontendId
      title
      titleSlug
      difficulty
      acRate
      isPaidOnly
      topicTags {
        name
        slug
      }
    }
  }
}
"""

QUESTION_DETAIL_QUERY = """
query questionDetail($titleSlug: String!) {
  question(titleSlug: $titleSlug) {
    questionId
    questionFrontendId
    title
    titleSlug
    difficulty
    content
    isPaidOnly
    topicTags {
      name
      slug
    }
    codeSnippets {
      lang
      langSlug
      code
    }
    hints
    sampleTestCase
    exampleTestcaseList
  }
}
"""

FAVORITES_QUERY = """
query favoritesList {
  favoritesLists {
    allFavorites {
      idHash
      name
      questions {
        questionId
        frontendQuestionId: questionFrontendId
        title
        titleSlug
        difficulty
        acRate
        isPaidOnly
      }
    }
  }
}
"""

ADD_TO_FAVORITE_MUTATION = """
mutation addQuestionToFavorite($favoriteIdHash: String!, $questionId: String!) {
  addQuestionToFavorite(favoriteIdHash: $favoriteIdHash, questionId: $questionId) {
    ok
    error
  }
}
"""

REMOVE_FROM_FAVORITE_MUTATION = """
mutation removeQuestionFromFavorite($favoriteIdHash: String!, $questionId: String!) {
  removeQuestionFromFavorite(favoriteIdHash: $favoriteIdHash, questionId: $questionId) {
    ok
    error
  }
}
"""

USER_STATUS_QUERY = """
query globalData {
  userStatus {
    username
    isSignedIn
  }
}
"""

USER_STATS_QUERY = """
query userProblemsSolved($username: String!) {
  matchedUser(username: $username) {
    submitStatsGlobal {
      acSubmissionNum {
        difficulty
        count
      }
    }
  }
}
"""
